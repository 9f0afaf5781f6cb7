"""Koa CLI -- scaffolding tool for Koa.js servers.

Resolves a project configuration from command-line flags, a JSON/YAML config
file and interactive answers, validates it, and renders a Koa.js skeleton.
"""

from koa_cli.manager import ConfigurationManager, merge_partials
from koa_cli.models import ProjectConfiguration
from koa_cli.validator import suggest_valid_name, validate_project_name

__all__ = [
    "ConfigurationManager",
    "ProjectConfiguration",
    "merge_partials",
    "suggest_valid_name",
    "validate_project_name",
]
