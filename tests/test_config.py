"""Tests for configuration loading module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from multipart_copy.config import (
    ConfigError,
    has_env_settings,
    load_from_env,
    load_from_json,
    load_settings,
)
from multipart_copy.models import CopySettings


def clean_environ() -> dict[str, str]:
    """Current environment without MULTIPART_COPY_* variables."""
    return {k: v for k, v in os.environ.items() if not k.startswith("MULTIPART_COPY_")}


class TestLoadFromJson:
    """Tests for load_from_json function."""

    def test_valid_config_with_all_fields(self, tmp_path: Path):
        """Load a valid config file with all fields specified."""
        config_data = {
            "endpoint_url": "https://s3.eu-central-1.amazonaws.com",
            "aws_access_key_id": "test-key",
            "aws_secret_access_key": "test-secret",
            "region_name": "eu-central-1",
            "addressing_style": "virtual",
            "part_size": 100_000_000,
            "max_concurrency": 16,
            "retry_attempts": 5,
        }
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps(config_data))

        settings = load_from_json(str(config_file))

        assert settings == CopySettings(**config_data)

    def test_empty_object_gives_defaults(self, tmp_path: Path):
        """Every key is optional."""
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text("{}")

        settings = load_from_json(str(config_file))

        assert settings == CopySettings()
        assert settings.addressing_style == "auto"
        assert settings.retry_attempts == 3

    def test_missing_file_raises_error(self, tmp_path: Path):
        """Raise ConfigError when config file doesn't exist."""
        config_file = tmp_path / "nonexistent.json"

        with pytest.raises(ConfigError, match="Config file not found"):
            load_from_json(str(config_file))

    def test_malformed_json_raises_error(self, tmp_path: Path):
        """Raise ConfigError when config file contains invalid JSON."""
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text("{ invalid json }")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_from_json(str(config_file))

    def test_non_object_raises_error(self, tmp_path: Path):
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text("[1, 2, 3]")

        with pytest.raises(ConfigError, match="must contain a JSON object"):
            load_from_json(str(config_file))

    def test_unknown_key_raises_error(self, tmp_path: Path):
        """Typos in setting names are reported."""
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"part_sise": 10}))

        with pytest.raises(ConfigError, match="Unknown setting"):
            load_from_json(str(config_file))

    def test_invalid_addressing_style_raises_error(self, tmp_path: Path):
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"addressing_style": "sideways"}))

        with pytest.raises(ConfigError, match="addressing_style"):
            load_from_json(str(config_file))

    def test_half_credentials_raise_error(self, tmp_path: Path):
        """Access key without a secret key is rejected."""
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"aws_access_key_id": "only-key"}))

        with pytest.raises(ConfigError, match="set together"):
            load_from_json(str(config_file))

    @pytest.mark.parametrize("value", [0, -4])
    def test_non_positive_integer_raises_error(self, tmp_path: Path, value: int):
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"max_concurrency": value}))

        with pytest.raises(ConfigError, match="must be positive"):
            load_from_json(str(config_file))


class TestLoadFromEnv:
    """Tests for load_from_env function."""

    def test_valid_env_vars_parsed_correctly(self):
        """Parse every supported variable."""
        env_vars = {
            "MULTIPART_COPY_ENDPOINT_URL": "https://s3.example.com",
            "MULTIPART_COPY_ACCESS_KEY": "key",
            "MULTIPART_COPY_SECRET_KEY": "secret",
            "MULTIPART_COPY_REGION": "us-east-1",
            "MULTIPART_COPY_ADDRESSING_STYLE": "path",
            "MULTIPART_COPY_PART_SIZE": "10485760",
            "MULTIPART_COPY_MAX_CONCURRENCY": "8",
            "MULTIPART_COPY_RETRY_ATTEMPTS": "5",
        }

        with patch.dict(os.environ, {**clean_environ(), **env_vars}, clear=True):
            settings = load_from_env()

        assert settings.endpoint_url == "https://s3.example.com"
        assert settings.aws_access_key_id == "key"
        assert settings.aws_secret_access_key == "secret"
        assert settings.region_name == "us-east-1"
        assert settings.addressing_style == "path"
        assert settings.part_size == 10_485_760
        assert settings.max_concurrency == 8
        assert settings.retry_attempts == 5

    def test_empty_value_treated_as_unset(self):
        env_vars = {"MULTIPART_COPY_REGION": ""}

        with patch.dict(os.environ, {**clean_environ(), **env_vars}, clear=True):
            settings = load_from_env()

        assert settings.region_name is None

    def test_unknown_variable_raises_error(self):
        env_vars = {"MULTIPART_COPY_BUCKET": "nope"}

        with patch.dict(os.environ, {**clean_environ(), **env_vars}, clear=True):
            with pytest.raises(ConfigError, match="MULTIPART_COPY_BUCKET"):
                load_from_env()

    def test_non_integer_value_raises_error(self):
        env_vars = {"MULTIPART_COPY_PART_SIZE": "fifty megabytes"}

        with patch.dict(os.environ, {**clean_environ(), **env_vars}, clear=True):
            with pytest.raises(ConfigError, match="must be an integer"):
                load_from_env()

    def test_has_env_settings(self):
        with patch.dict(os.environ, clean_environ(), clear=True):
            assert has_env_settings() is False

        with patch.dict(os.environ, {**clean_environ(), "MULTIPART_COPY_REGION": "x"}, clear=True):
            assert has_env_settings() is True


class TestLoadSettings:
    """Tests for load_settings with priority logic."""

    def test_env_vars_take_priority(self, tmp_path: Path):
        """Environment variables override the JSON file."""
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"region_name": "from-file"}))
        env_vars = {"MULTIPART_COPY_REGION": "from-env"}

        with patch.dict(os.environ, {**clean_environ(), **env_vars}, clear=True):
            settings = load_settings(str(config_file))

        assert settings.region_name == "from-env"

    def test_falls_back_to_config_json(self, tmp_path: Path):
        config_file = tmp_path / "multipart-copy.json"
        config_file.write_text(json.dumps({"region_name": "from-file"}))

        with patch.dict(os.environ, clean_environ(), clear=True):
            settings = load_settings(str(config_file))

        assert settings.region_name == "from-file"

    def test_defaults_when_neither_exists(self, tmp_path: Path):
        """Without a file or variables boto3 resolves everything itself."""
        with patch.dict(os.environ, clean_environ(), clear=True):
            settings = load_settings(str(tmp_path / "missing.json"))

        assert settings == CopySettings()
