"""Configuration loading for the multipart copy tool.

Supports two configuration sources:
1. Environment variables (for CI/CD) - takes priority
2. A JSON file (for local development)

When neither is present, defaults apply and boto3 resolves credentials
through its usual chain (environment, shared config, instance role).

Environment Variable Format:
    MULTIPART_COPY_ENDPOINT_URL=https://s3.eu-central-1.amazonaws.com
    MULTIPART_COPY_ACCESS_KEY=xxx
    MULTIPART_COPY_SECRET_KEY=xxx
    MULTIPART_COPY_REGION=eu-central-1
    MULTIPART_COPY_ADDRESSING_STYLE=virtual
    MULTIPART_COPY_PART_SIZE=100000000
    MULTIPART_COPY_MAX_CONCURRENCY=16
    MULTIPART_COPY_RETRY_ATTEMPTS=3

JSON Format (every key optional):
    {
        "endpoint_url": "https://s3.eu-central-1.amazonaws.com",
        "aws_access_key_id": "xxx",
        "aws_secret_access_key": "xxx",
        "region_name": "eu-central-1",
        "addressing_style": "virtual",
        "part_size": 100000000,
        "max_concurrency": 16,
        "retry_attempts": 3
    }
"""

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Optional

from multipart_copy.models import CopySettings


class ConfigError(Exception):
    """Raised when configuration loading fails."""

    pass


ENV_PREFIX = "MULTIPART_COPY_"

# Environment variable suffix -> CopySettings field
ENV_FIELDS = {
    "ENDPOINT_URL": "endpoint_url",
    "ACCESS_KEY": "aws_access_key_id",
    "SECRET_KEY": "aws_secret_access_key",
    "REGION": "region_name",
    "ADDRESSING_STYLE": "addressing_style",
    "PART_SIZE": "part_size",
    "MAX_CONCURRENCY": "max_concurrency",
    "RETRY_ATTEMPTS": "retry_attempts",
}

INTEGER_FIELDS = {"part_size", "max_concurrency", "retry_attempts"}

ADDRESSING_STYLES = {"auto", "path", "virtual"}


def _build_settings(values: dict[str, Any], source: str) -> CopySettings:
    """Validate raw values and build CopySettings.

    Args:
        values: Mapping of CopySettings field names to raw values.
        source: Description of where the values came from, for errors.

    Raises:
        ConfigError: If a value has the wrong type or is out of range.
    """
    known = {f.name for f in fields(CopySettings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {source}: {', '.join(unknown)}")

    cleaned: dict[str, Any] = {}
    for name, value in values.items():
        if value is None:
            continue
        if name in INTEGER_FIELDS:
            try:
                value = int(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"'{name}' in {source} must be an integer, got {value!r}") from e
            if value < 1:
                raise ConfigError(f"'{name}' in {source} must be positive, got {value}")
        cleaned[name] = value

    style = cleaned.get("addressing_style", "auto")
    if style not in ADDRESSING_STYLES:
        raise ConfigError(
            f"'addressing_style' in {source} must be one of "
            f"{', '.join(sorted(ADDRESSING_STYLES))}, got {style!r}"
        )

    if bool(cleaned.get("aws_access_key_id")) != bool(cleaned.get("aws_secret_access_key")):
        raise ConfigError(f"Access key and secret key must be set together in {source}")

    return CopySettings(**cleaned)


def load_from_json(config_path: str) -> CopySettings:
    """Load settings from a JSON file.

    Args:
        config_path: Path to the JSON settings file.

    Returns:
        The loaded settings.

    Raises:
        ConfigError: If the file doesn't exist, contains invalid JSON,
                    or holds invalid settings.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a JSON object: {config_path}")

    return _build_settings(data, config_path)


def load_from_env() -> CopySettings:
    """Load settings from MULTIPART_COPY_* environment variables.

    Raises:
        ConfigError: If a variable is unknown or holds an invalid value.
    """
    values: dict[str, Any] = {}

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue

        suffix = env_key[len(ENV_PREFIX):]
        if suffix not in ENV_FIELDS:
            raise ConfigError(f"Unknown environment variable: {env_key}")

        values[ENV_FIELDS[suffix]] = env_value or None

    return _build_settings(values, "environment")


def has_env_settings() -> bool:
    """Check if any MULTIPART_COPY_* environment variables exist."""
    return any(key.startswith(ENV_PREFIX) for key in os.environ)


def load_settings(config_path: Optional[str] = "multipart-copy.json") -> CopySettings:
    """Load settings with environment priority.

    Priority order:
    1. Environment variables (if any MULTIPART_COPY_* vars exist)
    2. The JSON file at config_path, if it exists
    3. Defaults

    Args:
        config_path: Path to the JSON settings file (used as fallback).

    Returns:
        The loaded settings.

    Raises:
        ConfigError: If the chosen source holds invalid settings.
    """
    if has_env_settings():
        return load_from_env()
    if config_path and Path(config_path).exists():
        return load_from_json(config_path)
    return CopySettings()
