"""
Configuration management for pginspect.

Loads and validates configuration from pginspect.toml files and
PGINSPECT_* environment variables using Pydantic.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pginspect.exceptions import ConfigError

CONFIG_FILENAME = "pginspect.toml"

_TOML_ESCAPES = {"\b": "\\b", "\t": "\\t", "\n": "\\n", "\f": "\\f", "\r": "\\r"}


class DatabaseConfig(BaseSettings):
    """Catalog connection configuration."""

    model_config = SettingsConfigDict(env_prefix="PGINSPECT_DATABASE_")

    url: str = Field(
        default="postgresql://localhost/postgres",
        description="PostgreSQL connection URL",
    )
    schemas: list[str] = Field(
        default=["public"],
        description="Schema whitelist (exact, case-sensitive names)",
    )

    @field_validator("schemas")
    @classmethod
    def _no_blank_schemas(cls, value: list[str]) -> list[str]:
        if any(not name for name in value):
            raise ValueError("schema names must not be empty")
        return value


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="PGINSPECT_LOGGING_")

    level: str = Field(default="INFO", description="Log level name")
    timestamp_format: str = Field(
        default="%b %d, %H:%M:%S", description="strftime format for log timestamps"
    )
    color: bool = Field(default=True, description="Colourise level names")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


class Config(BaseSettings):
    """Main configuration for pginspect."""

    model_config = SettingsConfigDict(env_prefix="PGINSPECT_")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to pginspect.toml file

        Returns:
            Config instance

        Raises:
            ConfigError: If config file doesn't exist or is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

        try:
            return cls(
                database=DatabaseConfig(**data.get("database", {})),
                logging=LoggingConfig(**data.get("logging", {})),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from pginspect.toml.

        Searches for pginspect.toml starting from start_dir and walking up
        parent directories. Falls back to defaults and environment variables
        when no file is found.

        Args:
            start_dir: Directory to start search (defaults to current directory)

        Returns:
            Config instance
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        # Walk up directory tree
        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        return cls()

    def to_toml(self, path: Path | str, include_password: bool = True) -> None:
        """
        Write configuration to TOML file.

        Args:
            path: Path to write pginspect.toml
            include_password: Keep the password in the database URL; when
                False it is left out (supply it through PGPASSWORD instead)
        """
        config_path = Path(path)
        url = self.database.url if include_password else _without_password(self.database.url)
        schemas = ", ".join(_toml_string(name) for name in self.database.schemas)

        toml_content = f"""# pginspect configuration

[database]
url = {_toml_string(url)}
schemas = [{schemas}]

[logging]
level = {_toml_string(self.logging.level)}
timestamp_format = {_toml_string(self.logging.timestamp_format)}
color = {str(self.logging.color).lower()}
"""

        config_path.write_text(toml_content)


def _toml_string(value: str) -> str:
    """Quote a value as a TOML basic string."""
    escaped = []
    for char in value:
        if char in ('"', "\\"):
            escaped.append("\\" + char)
        elif char in _TOML_ESCAPES:
            escaped.append(_TOML_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            escaped.append(f"\\u{ord(char):04X}")
        else:
            escaped.append(char)
    return '"' + "".join(escaped) + '"'


def _without_password(url: str) -> str:
    """Drop the password from a postgresql:// URL, keeping the user name."""
    if "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    return f"{scheme}://{credentials.split(':', 1)[0]}@{host}"
