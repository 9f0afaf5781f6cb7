"""Koa CLI scaffolder -- renders Koa.js project skeletons.

Takes a validated ``ProjectConfiguration`` and renders the matching Jinja2
template tree plus a ``package.json`` into a new project directory.

Quick usage::

    from koa_cli.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config)
    result = await generator.generate("/tmp/output")
"""

from koa_cli.scaffolder.generator import GenerationResult, ProjectGenerator
from koa_cli.scaffolder.templates import TemplateRenderer

__all__ = [
    "GenerationResult",
    "ProjectGenerator",
    "TemplateRenderer",
]
