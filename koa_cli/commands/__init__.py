"""Sub-command implementations for the ``koa`` CLI."""

from koa_cli.commands.create import ProjectCreator
from koa_cli.commands.update import update_cli

__all__ = ["ProjectCreator", "update_cli"]
