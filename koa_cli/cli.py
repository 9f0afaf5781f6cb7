"""Command line interface for the Koa project generator.

Usage::

    koa create my-app
    koa create my-api -t api --package-manager npm
    koa create my-app -c koa.config.yaml --skip-install
    koa update --check-only
    koa info
"""

from __future__ import annotations

import argparse
import asyncio
import os
import platform
import sys
from typing import Sequence

from .commands import ProjectCreator, update_cli
from .errors import ErrorHandler
from .manager import ConfigurationManager
from .models import CommandLineOptions
from .prompts import InteractivePrompter
from .scaffolder import TemplateRenderer
from .settings import Settings
from .utils import Reporter
from .version import get_cli_version, get_version_info

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


def _global_flags() -> argparse.ArgumentParser:
    # SUPPRESS keeps a sub-parser from resetting a flag given before the command.
    flags = argparse.ArgumentParser(add_help=False)
    flags.add_argument(
        "--verbose", action="store_true", default=argparse.SUPPRESS,
        help="Show debug output and error details",
    )
    flags.add_argument(
        "--quiet", action="store_true", default=argparse.SUPPRESS,
        help="Only show errors",
    )
    flags.add_argument(
        "--no-color", action="store_true", default=argparse.SUPPRESS,
        help="Disable coloured output",
    )
    return flags


def build_parser() -> argparse.ArgumentParser:
    flags = _global_flags()
    parser = argparse.ArgumentParser(
        prog="koa",
        description="Generate Koa.js project scaffolds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        parents=[flags],
        epilog=(
            "Examples:\n"
            "  koa create my-app                 create my-app with the defaults\n"
            "  koa create my-api -t api          use the api template\n"
            "  koa create my-app --skip-install  skip dependency installation\n"
            "  koa update                        check for CLI and template updates\n"
        ),
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {get_cli_version()}",
    )
    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser(
        "create", parents=[flags], help="create a new Koa.js project"
    )
    create_parser.add_argument("project_name", help="Name of the project directory")
    create_parser.add_argument(
        "-t", "--template", default=None,
        help="Project template (basic, api, fullstack)",
    )
    create_parser.add_argument(
        "-c", "--config", default=None,
        help="Path to a JSON or YAML config file",
    )
    create_parser.add_argument(
        "--skip-install", action="store_true", default=None,
        help="Do not install dependencies",
    )
    create_parser.add_argument(
        "--package-manager", default=None,
        help="Package manager to use (npm, yarn, pnpm)",
    )
    create_parser.add_argument(
        "--typescript", action="store_true", default=None,
        help="Generate a TypeScript project",
    )
    create_parser.add_argument(
        "--no-git", dest="git", action="store_false", default=None,
        help="Do not initialise a git repository",
    )
    create_parser.add_argument(
        "--force", action="store_true", default=None,
        help="Overwrite the target directory if it exists",
    )

    update_parser = subparsers.add_parser(
        "update", parents=[flags], help="update the CLI and templates"
    )
    update_parser.add_argument(
        "--check-only", action="store_true", help="Only check for updates",
    )
    update_parser.add_argument(
        "--force", action="store_true", help="Update even when already up to date",
    )

    subparsers.add_parser("info", parents=[flags], help="show version and environment details")
    subparsers.add_parser("version", parents=[flags], help="show the CLI version")

    return parser


def _handle_create(args: argparse.Namespace, settings: Settings, reporter: Reporter) -> int:
    creator = ProjectCreator(
        reporter,
        manager=ConfigurationManager(),
        prompter=InteractivePrompter(reporter),
        renderer=TemplateRenderer(settings.templates_dir),
        command_timeout=settings.command_timeout,
    )
    # Prompts run before the event loop starts so Ctrl-C interrupts them.
    config, setup = creator.prepare(args.project_name, CommandLineOptions.from_namespace(args))
    asyncio.run(creator.generate(config, setup))
    return EXIT_OK


def _handle_info(reporter: Reporter) -> int:
    info = get_version_info()
    reporter.summary_table(
        {
            "CLI version": info.cli_version,
            "Templates version": info.templates_version,
            "Last update check": info.last_update_check.strftime("%Y-%m-%d %H:%M:%S"),
            "Python version": platform.python_version(),
            "Platform": f"{sys.platform} {platform.machine()}",
            "Working directory": os.getcwd(),
        },
        title="Koa CLI",
    )
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env().with_flags(
            verbose=getattr(args, "verbose", False),
            quiet=getattr(args, "quiet", False),
            no_color=getattr(args, "no_color", False),
        )
    except ValueError as exc:
        # Broken environment settings; report them with default output settings.
        fallback = ErrorHandler(Reporter())
        fallback.log_error(fallback.handle_error(exc, {"command": args.command}))
        return EXIT_ERROR

    reporter = Reporter(verbose=settings.verbose, quiet=settings.quiet, color=settings.color)
    handler = ErrorHandler(reporter)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    context: dict[str, object] = {"command": args.command}
    try:
        if args.command == "create":
            context["project_name"] = args.project_name
            return _handle_create(args, settings, reporter)
        if args.command == "update":
            update_cli(reporter, check_only=args.check_only, force=args.force)
            return EXIT_OK
        if args.command == "info":
            return _handle_info(reporter)
        if args.command == "version":
            reporter.console.print(get_cli_version())
            return EXIT_OK
    except KeyboardInterrupt:
        reporter.error("Aborted")
        return EXIT_INTERRUPTED
    except Exception as exc:
        handler.log_error(handler.handle_error(exc, context))
        return EXIT_ERROR

    parser.error(f"unknown command: {args.command}")
    return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
