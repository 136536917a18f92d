"""
Resolver configuration management.

This module loads the resolver configuration from simport.toml or the
[tool.simport] table of pyproject.toml, and from environment variables, with
environment variables taking precedence.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from simport.schema.introspection import (
    DuckDBSchemaIntrospector,
    SchemaIntrospector,
    SqlSchemaIntrospector,
    StaticSchemaIntrospector,
)
from simport.shared.constants import DEFAULT_OUTPUT_FOLDER, DEFAULT_OUTPUT_FORMAT
from simport.shared.exceptions import ConfigError


@dataclass
class ResolverConfig:
    """Where the schema comes from and where results go."""

    schema_file: str | None = None
    database: str | None = None
    ddl_file: str | None = None
    ddl_dialect: str | None = None
    output_folder: str = DEFAULT_OUTPUT_FOLDER
    format: str = DEFAULT_OUTPUT_FORMAT

    def __post_init__(self) -> None:
        if self.format not in ("json", "yaml"):
            raise ConfigError(f"Invalid output format '{self.format}'. Must be 'json' or 'yaml'.")

    def build_introspector(self) -> SchemaIntrospector:
        """
        Create the schema introspector this configuration points at.

        Raises:
            ConfigError: If not exactly one schema source is configured
        """
        sources = {
            "schema_file": self.schema_file,
            "database": self.database,
            "ddl_file": self.ddl_file,
        }
        configured = [name for name, value in sources.items() if value]
        if len(configured) != 1:
            raise ConfigError(
                "Exactly one schema source must be configured (schema_file, database or ddl_file), "
                f"got: {', '.join(configured) or 'none'}"
            )

        if self.schema_file:
            return StaticSchemaIntrospector.from_file(self.schema_file)
        if self.database:
            return DuckDBSchemaIntrospector.from_path(self.database)
        return SqlSchemaIntrospector.from_ddl_file(self.ddl_file, dialect=self.ddl_dialect)


class ResolverConfigManager:
    """Manages resolver configuration from multiple sources."""

    ENV_MAPPINGS = {
        "SIMPORT_SCHEMA_FILE": "schema_file",
        "SIMPORT_DATABASE": "database",
        "SIMPORT_DDL_FILE": "ddl_file",
        "SIMPORT_DDL_DIALECT": "ddl_dialect",
        "SIMPORT_OUTPUT_FOLDER": "output_folder",
        "SIMPORT_FORMAT": "format",
    }

    PATH_KEYS = ("schema_file", "database", "ddl_file", "output_folder")
    SOURCE_KEYS = ("schema_file", "database", "ddl_file")

    def __init__(self, project_root: str | None = None) -> None:
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_config(self, overrides: dict[str, Any] | None = None) -> ResolverConfig:
        """
        Load configuration from TOML, environment variables and explicit overrides.

        Args:
            overrides: Values taking precedence over everything else (None values ignored)

        Returns:
            ResolverConfig

        Raises:
            ConfigError: If a configuration file is invalid
        """
        overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        merged = self._load_toml_config()
        merged.update(self._load_env_config())

        # An explicit schema source replaces the configured one
        if any(key in overrides for key in self.SOURCE_KEYS):
            for key in self.SOURCE_KEYS:
                merged.pop(key, None)
        merged.update(overrides)

        known = {f.name for f in fields(ResolverConfig)}
        unknown = sorted(set(merged) - known)
        if unknown:
            self.logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

        return ResolverConfig(**{k: v for k, v in merged.items() if k in known})

    def _load_toml_config(self) -> dict[str, Any]:
        """Load configuration from simport.toml, falling back to pyproject.toml."""
        simport_toml = self.project_root / "simport.toml"
        if simport_toml.exists():
            return self._resolve_paths(self._read_toml(simport_toml))

        pyproject_toml = self.project_root / "pyproject.toml"
        if pyproject_toml.exists():
            data = self._read_toml(pyproject_toml)
            return self._resolve_paths(dict(data.get("tool", {}).get("simport", {})))

        self.logger.debug("No simport.toml or pyproject.toml found")
        return {}

    def _read_toml(self, toml_file: Path) -> dict[str, Any]:
        try:
            with open(toml_file, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {toml_file}: {e}") from e

    def _resolve_paths(self, config: dict[str, Any]) -> dict[str, Any]:
        """Make relative paths from a config file relative to the project root."""
        for key in self.PATH_KEYS:
            value = config.get(key)
            if value and not Path(value).is_absolute():
                config[key] = str(self.project_root / value)
        return config

    def _load_env_config(self) -> dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}
        for env_var, config_key in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is not None:
                env_config[config_key] = value
        return env_config


def load_resolver_config(
    project_root: str | None = None, overrides: dict[str, Any] | None = None
) -> ResolverConfig:
    """Convenience function to load the resolver configuration."""
    return ResolverConfigManager(project_root).load_config(overrides)
