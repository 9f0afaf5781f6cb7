"""Project-name validation.

Names follow the npm package naming rules plus a few constraints that keep the
name usable as a directory on every platform. All functions here are pure:
they return a ``ValidationResult`` and never raise, so callers decide whether
to abort or merely show warnings.
"""

from __future__ import annotations

import re

from .models import ValidationIssue, ValidationResult

MAX_NAME_LENGTH = 214
FALLBACK_NAME = "my-koa-app"
DIGIT_PREFIX = "app-"

RESERVED_NAMES: frozenset[str] = frozenset(
    {
        "node_modules",
        "favicon.ico",
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        ".git",
        ".gitignore",
        ".env",
        # Windows device names
        "con",
        "prn",
        "aux",
        "nul",
        *(f"com{i}" for i in range(1, 10)),
        *(f"lpt{i}" for i in range(1, 10)),
    }
)

_ALLOWED = re.compile(r"^[a-zA-Z0-9._-]+$")
_INVALID_START = re.compile(r"^[._]")
_INVALID_END = re.compile(r"[.-]$")
_SCOPED = re.compile(r"^@[a-zA-Z0-9._-]+/[a-zA-Z0-9._-]+$")
_CONSECUTIVE = re.compile(r"[.-]{2,}")
_UPPERCASE = re.compile(r"[A-Z]")


def validate_project_name(name: str) -> ValidationResult:
    """Check *name* against every project-naming rule.

    All rules are evaluated independently so the user sees every problem at
    once; only an empty name short-circuits.

    Args:
        name: The raw project name from the command line.

    Returns:
        A ``ValidationResult``. ``valid`` is ``True`` iff there are no errors;
        uppercase letters only produce a warning.
    """
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    if not name or not name.strip():
        errors.append(ValidationIssue(type="EMPTY_NAME", message="Project name must not be empty"))
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    trimmed = name.strip()

    if len(trimmed) > MAX_NAME_LENGTH:
        errors.append(
            ValidationIssue(
                type="NAME_TOO_LONG",
                message=f"Project name must not exceed {MAX_NAME_LENGTH} characters",
            )
        )

    if len(trimmed) < 1:
        errors.append(
            ValidationIssue(
                type="NAME_TOO_SHORT",
                message="Project name must contain at least 1 character",
            )
        )

    if not _ALLOWED.match(trimmed):
        errors.append(
            ValidationIssue(
                type="INVALID_CHARACTERS",
                message=(
                    "Project name may only contain letters, digits, dots (.), "
                    "underscores (_) and hyphens (-)"
                ),
            )
        )

    if _INVALID_START.search(trimmed):
        errors.append(
            ValidationIssue(
                type="INVALID_START",
                message="Project name must not start with a dot (.) or underscore (_)",
            )
        )

    if _INVALID_END.search(trimmed):
        errors.append(
            ValidationIssue(
                type="INVALID_END",
                message="Project name must not end with a dot (.) or hyphen (-)",
            )
        )

    if trimmed.lower() in RESERVED_NAMES:
        errors.append(
            ValidationIssue(
                type="RESERVED_NAME",
                message=f'"{trimmed}" is a reserved name and cannot be used as a project name',
            )
        )

    if trimmed.startswith("@") and not _SCOPED.match(trimmed):
        errors.append(
            ValidationIssue(
                type="INVALID_SCOPE_FORMAT",
                message="Scoped names must look like @scope/package-name",
            )
        )

    if _CONSECUTIVE.search(trimmed):
        errors.append(
            ValidationIssue(
                type="CONSECUTIVE_SEPARATORS",
                message="Project name must not contain consecutive dots or hyphens",
            )
        )

    if _UPPERCASE.search(trimmed):
        warnings.append(
            ValidationIssue(
                type="UPPERCASE_WARNING",
                message="Lowercase project names are recommended",
            )
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def suggest_valid_name(name: str) -> str:
    """Derive a valid project name from an invalid one.

    Examples::

        suggest_valid_name("My--App!") -> "my-app"
        suggest_valid_name("42 things") -> "app-42-things"
        suggest_valid_name("...") -> "my-koa-app"
    """
    suggestion = name.strip().lower()
    suggestion = re.sub(r"[^a-z0-9._-]", "-", suggestion)
    suggestion = re.sub(r"^[._]+", "", suggestion)
    suggestion = re.sub(r"[.-]+$", "", suggestion)
    suggestion = re.sub(r"[._-]+", "-", suggestion)

    if not suggestion:
        suggestion = FALLBACK_NAME

    if suggestion[0].isdigit():
        suggestion = DIGIT_PREFIX + suggestion

    return suggestion


def get_naming_rules() -> str:
    """Return the naming rules as help text for failed validations."""
    return """
Project naming rules:
  - only letters, digits, dots (.), underscores (_) and hyphens (-)
  - between 1 and 214 characters
  - must not start with a dot (.) or underscore (_)
  - must not end with a dot (.) or hyphen (-)
  - no consecutive dots or hyphens
  - not a reserved name (node_modules, package.json, con, ...)
  - lowercase words separated by hyphens are recommended

Valid examples:
  - my-app
  - koa-api-server

Invalid examples:
  - .my-app        (starts with a dot)
  - my-app-        (ends with a hyphen)
  - my--app        (consecutive hyphens)
  - node_modules   (reserved name)
"""
