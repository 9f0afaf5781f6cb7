"""``package.json`` assembly for generated Koa projects.

Dependencies are picked from fixed tables keyed by template, feature,
database type and authentication type, so the manifest only lists packages the
generated code actually imports.
"""

from __future__ import annotations

import json
from typing import Any

from ..models import ProjectConfiguration

BASE_DEPENDENCIES: dict[str, str] = {
    "koa": "^2.15.3",
    "koa-bodyparser": "^4.4.1",
    "dotenv": "^16.4.5",
}

TEMPLATE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "basic": {},
    "api": {"@koa/router": "^12.0.1"},
}

FEATURE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "logging": {"winston": "^3.13.0"},
    "cors": {"@koa/cors": "^5.0.0"},
    "helmet": {"koa-helmet": "^7.0.2"},
    "rate_limit": {"koa-ratelimit": "^5.1.0"},
    "swagger": {"koa2-swagger-ui": "^5.10.0"},
    "redis": {"ioredis": "^5.4.1"},
}

DATABASE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "mysql": {"mysql2": "^3.10.0"},
    "postgresql": {"pg": "^8.12.0"},
    "mongodb": {"mongoose": "^8.4.0"},
}

AUTH_DEPENDENCIES: dict[str, dict[str, str]] = {
    "jwt": {"jsonwebtoken": "^9.0.2", "koa-jwt": "^4.0.4"},
    "session": {"koa-session": "^6.4.0"},
}

DEV_DEPENDENCIES: dict[str, str] = {"nodemon": "^3.1.4"}

TYPESCRIPT_DEV_DEPENDENCIES: dict[str, str] = {
    "typescript": "^5.4.5",
    "ts-node": "^10.9.2",
    "@types/node": "^20.14.0",
    "@types/koa": "^2.15.0",
    "@types/koa-bodyparser": "^4.3.12",
}

# @types packages for dependencies that do not ship their own typings.
TYPESCRIPT_TYPINGS: dict[str, str] = {
    "@koa/router": "@types/koa__router",
    "@koa/cors": "@types/koa__cors",
    "koa-ratelimit": "@types/koa-ratelimit",
    "jsonwebtoken": "@types/jsonwebtoken",
    "koa-session": "@types/koa-session",
    "pg": "@types/pg",
}
TYPINGS_VERSION = "*"


def uses_redis(config: ProjectConfiguration) -> bool:
    """A Redis client is generated for the ``redis`` feature or an explicit cache."""
    return config.features.redis or config.cache is not None


def collect_dependencies(config: ProjectConfiguration) -> dict[str, str]:
    """Return the runtime dependencies for *config*, sorted by name."""
    deps: dict[str, str] = dict(BASE_DEPENDENCIES)
    deps.update(TEMPLATE_DEPENDENCIES.get(config.template, {}))

    for feature in config.features.enabled():
        deps.update(FEATURE_DEPENDENCIES.get(feature, {}))
    if uses_redis(config):
        deps.update(FEATURE_DEPENDENCIES["redis"])
    if config.database is not None:
        deps.update(DATABASE_DEPENDENCIES.get(config.database.type, {}))
    if config.authentication is not None:
        deps.update(AUTH_DEPENDENCIES.get(config.authentication.type, {}))

    return dict(sorted(deps.items()))


def collect_dev_dependencies(
    config: ProjectConfiguration, dependencies: dict[str, str]
) -> dict[str, str]:
    """Return the dev dependencies, including typings for TypeScript projects."""
    dev: dict[str, str] = dict(DEV_DEPENDENCIES)
    if config.typescript:
        dev.update(TYPESCRIPT_DEV_DEPENDENCIES)
        for package, typings in TYPESCRIPT_TYPINGS.items():
            if package in dependencies:
                dev[typings] = TYPINGS_VERSION
    return dict(sorted(dev.items()))


def build_scripts(config: ProjectConfiguration) -> dict[str, str]:
    if config.typescript:
        return {
            "build": "tsc",
            "start": "node dist/server.js",
            "dev": "nodemon --watch src --ext ts --exec ts-node src/server.ts",
        }
    return {
        "start": "node src/server.js",
        "dev": "nodemon src/server.js",
    }


def build_package_json(config: ProjectConfiguration, description: str = "") -> dict[str, Any]:
    """Assemble the ``package.json`` document for *config*."""
    dependencies = collect_dependencies(config)
    return {
        "name": config.name,
        "version": "1.0.0",
        "description": description or f"Koa.js {config.template} server",
        "main": "dist/server.js" if config.typescript else "src/server.js",
        "scripts": build_scripts(config),
        "keywords": ["koa", config.template],
        "author": "",
        "license": "MIT",
        "dependencies": dependencies,
        "devDependencies": collect_dev_dependencies(config, dependencies),
    }


def render_package_json(config: ProjectConfiguration, description: str = "") -> str:
    return json.dumps(build_package_json(config, description), indent=2) + "\n"
