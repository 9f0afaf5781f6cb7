"""``koa create`` -- validate, configure and generate a new Koa project.

Flow::

    validate name -> check target directory -> (prompts) -> load config file
    -> merge -> validate configuration -> summary -> generate -> install -> git

Every failure is raised as a ``KoaCliError`` subclass; ``cli.main`` turns it
into an error message and exit status 1. Side effects already performed
(e.g. a directory removed by ``--force``) are not rolled back.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import ConfigValidationError, DirectoryConflictError, NameValidationError
from ..manager import ConfigurationManager
from ..models import CommandLineOptions, ProjectConfiguration, SetupOptions
from ..prompts import InteractivePrompter
from ..scaffolder import GenerationResult, ProjectGenerator, TemplateRenderer
from ..utils import Reporter, remove_path
from ..validator import get_naming_rules, suggest_valid_name, validate_project_name


class ProjectCreator:
    """Orchestrates one ``koa create`` invocation.

    Collaborators are passed in by the CLI entry point so tests can swap any
    of them out.

    Attributes:
        reporter: Output channel.
        manager: Configuration resolver.
        prompter: Interactive prompter.
        renderer: Jinja2 renderer handed to the generator.
        cwd: Directory in which the project folder is created.
    """

    def __init__(
        self,
        reporter: Reporter,
        *,
        manager: ConfigurationManager | None = None,
        prompter: InteractivePrompter | None = None,
        renderer: TemplateRenderer | None = None,
        cwd: str | Path | None = None,
        command_timeout: int = 600,
    ) -> None:
        self.reporter = reporter
        self.manager = manager or ConfigurationManager()
        self.prompter = prompter or InteractivePrompter(reporter)
        self.renderer = renderer or TemplateRenderer()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.command_timeout = command_timeout

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def create(
        self, project_name: str, options: CommandLineOptions
    ) -> GenerationResult:
        """Create the project *project_name* according to *options*.

        Returns:
            The generation result for the new project directory.

        Raises:
            NameValidationError: *project_name* breaks a naming rule.
            DirectoryConflictError: The target exists and ``force`` is unset.
            ConfigParseError: The config file could not be loaded.
            ConfigValidationError: The merged configuration is invalid.
            GenerationError: Rendering, installing or ``git init`` failed.
        """
        config, setup = self.prepare(project_name, options)
        return await self.generate(config, setup)

    def prepare(
        self, project_name: str, options: CommandLineOptions
    ) -> tuple[ProjectConfiguration, SetupOptions]:
        """Run every step before generation and return the resolved settings.

        Synchronous so the prompts read stdin on the main thread, where Ctrl-C
        raises ``KeyboardInterrupt``. The CLI calls this before starting the
        event loop.
        """
        self.reporter.info(f"Creating project: {project_name}")

        self.check_project_name(project_name)
        name = project_name.strip()
        target = self.cwd / name
        self.check_directory_conflict(target, force=bool(options.force))

        answers = None
        if self.needs_interactive_input(options):
            self.reporter.info("")
            answers = self.prompter.run_prompts()

        sources = self.manager.collect_sources(options, answers)
        if sources.config_file.ignored_keys:
            self.reporter.warning(
                "Ignoring unknown config file keys: "
                + ", ".join(sources.config_file.ignored_keys)
            )
        config = self.manager.resolve(name, sources)
        setup = self.manager.resolve_setup_options(sources)
        self.manager.display_configuration_sources(sources, config, self.reporter)

        validation = self.manager.validate_configuration(config)
        if not validation.valid:
            self.reporter.error("Configuration validation failed:")
            self.reporter.bullet_list(validation.errors, style="red", stderr=True)
            raise ConfigValidationError(validation.errors)

        self.prompter.display_summary(config)
        self.reporter.success("Configuration valid, generating project...")
        return config, setup

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def check_project_name(self, project_name: str) -> None:
        """Validate the name, printing errors, rules and a suggestion on failure."""
        result = validate_project_name(project_name)

        if not result.valid:
            self.reporter.error("Project name validation failed:")
            self.reporter.bullet_list(
                [issue.message for issue in result.errors], style="red", stderr=True
            )
            self.reporter.warning(get_naming_rules())
            self.reporter.hint(f"Suggested name: {suggest_valid_name(project_name)}")
            raise NameValidationError(
                f"Invalid project name: {project_name}",
                details={"errors": result.error_types()},
            )

        if result.warnings:
            self.reporter.warning("Warnings:")
            self.reporter.bullet_list(
                [issue.message for issue in result.warnings], style="yellow", stderr=True
            )

        self.reporter.success("Project name is valid")

    def check_directory_conflict(self, target: Path, *, force: bool) -> None:
        """Fail if *target* exists, or remove it when *force* is set."""
        if not target.exists():
            return
        if not force:
            raise DirectoryConflictError(
                f"Directory already exists: {target}. Use --force to overwrite it.",
                details={"path": str(target)},
            )
        self.reporter.warning(f"Directory exists and will be overwritten: {target}")
        remove_path(target)

    def needs_interactive_input(self, options: CommandLineOptions) -> bool:
        """Decide whether to run the interactive prompts.

        Extension point: the default prompts only when no config file is
        given, assuming a config file is complete. Override to implement a
        completeness check against the file's contents.
        """
        return not options.config

    async def generate(
        self, config: ProjectConfiguration, setup: SetupOptions
    ) -> GenerationResult:
        """Render the project, then install dependencies and init git as requested."""
        generator = ProjectGenerator(
            config, self.renderer, command_timeout=self.command_timeout
        )
        result = await generator.generate(self.cwd)
        self.reporter.success(
            f"Generated {len(result.generated_files)} files in {result.project_path}"
        )
        for path in result.generated_files:
            self.reporter.debug(str(path.relative_to(result.project_path)))

        if setup.install_dependencies:
            self.reporter.info(f"Installing dependencies with {config.package_manager}...")
            await generator.install_dependencies(result.project_path)
            self.reporter.success("Dependencies installed")

        if setup.init_git:
            await generator.init_git(result.project_path)
            self.reporter.success("Initialised git repository")

        self._print_next_steps(config, setup)
        return result

    def _print_next_steps(self, config: ProjectConfiguration, setup: SetupOptions) -> None:
        steps = [f"cd {config.name}"]
        if not setup.install_dependencies:
            steps.append(f"{config.package_manager} install")
        steps.append(f"{config.package_manager} run dev")
        self.reporter.rule("Next steps", style="bright_green")
        self.reporter.bullet_list(steps)
