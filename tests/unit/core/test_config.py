"""
Unit tests for chat_bridge/core/config.py - Settings Class and Singleton.

Reference:
- GUIDELINES: Sinha pp. 193-195 - Pydantic BaseSettings pattern
"""

import os
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError


class TestSettingsDefaults:
    """Defaults used when nothing is configured."""

    def test_settings_extends_base_settings(self):
        from pydantic_settings import BaseSettings

        from chat_bridge.core.config import Settings

        assert issubclass(Settings, BaseSettings)

    def test_default_values(self):
        """The defaults match the original deployment: port 927, local downstream."""
        from chat_bridge.core.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.service_name == "chat-bridge"
        assert settings.port == 927
        assert settings.downstream_url == "http://localhost:11434"
        assert settings.downstream_chat_path == "/api/chat"
        assert settings.downstream_timeout_seconds == 120.0
        assert settings.metrics_enabled is True

    def test_api_keys_default_is_empty(self):
        """An unconfigured secret is empty, never None."""
        from chat_bridge.core.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert isinstance(settings.api_keys, SecretStr)
        assert settings.api_keys.get_secret_value() == ""

    def test_downstream_chat_url(self):
        from chat_bridge.core.config import Settings

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.downstream_chat_url == "http://localhost:11434/api/chat"


class TestSettingsEnvironment:
    """Values loaded from environment variables."""

    def test_api_keys_read_from_unprefixed_variable(self):
        """API_KEYS is read without the CHAT_BRIDGE_ prefix."""
        from chat_bridge.core.config import Settings

        with patch.dict(os.environ, {"API_KEYS": "from-env"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.api_keys.get_secret_value() == "from-env"

    def test_api_keys_read_from_prefixed_variable(self):
        from chat_bridge.core.config import Settings

        with patch.dict(os.environ, {"CHAT_BRIDGE_API_KEYS": "prefixed"}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.api_keys.get_secret_value() == "prefixed"

    def test_prefixed_variables(self):
        from chat_bridge.core.config import Settings

        env = {
            "CHAT_BRIDGE_PORT": "9000",
            "CHAT_BRIDGE_DOWNSTREAM_URL": "http://ollama:11434",
            "CHAT_BRIDGE_DOWNSTREAM_TIMEOUT_SECONDS": "2.5",
            "CHAT_BRIDGE_METRICS_ENABLED": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        assert settings.port == 9000
        assert settings.downstream_url == "http://ollama:11434"
        assert settings.downstream_timeout_seconds == 2.5
        assert settings.metrics_enabled is False

    def test_env_file_is_loaded(self, tmp_path):
        """A .env file supplies values like dotenv does."""
        from chat_bridge.core.config import Settings

        env_file = tmp_path / ".env"
        env_file.write_text("API_KEYS=dotenv-secret\nCHAT_BRIDGE_PORT=8123\n")

        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=str(env_file))

        assert settings.api_keys.get_secret_value() == "dotenv-secret"
        assert settings.port == 8123


class TestSettingsValidation:
    """Field validators."""

    def test_secret_is_masked_in_repr(self):
        from chat_bridge.core.config import Settings

        settings = Settings(_env_file=None, api_keys="super-secret")

        assert "super-secret" not in repr(settings)
        assert "super-secret" not in str(settings.model_dump())

    def test_invalid_downstream_scheme_rejected(self):
        from chat_bridge.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, downstream_url="ftp://localhost:11434")

    def test_trailing_slash_stripped(self):
        from chat_bridge.core.config import Settings

        settings = Settings(_env_file=None, downstream_url="http://localhost:11434/")

        assert settings.downstream_url == "http://localhost:11434"
        assert settings.downstream_chat_url == "http://localhost:11434/api/chat"

    def test_chat_path_made_absolute(self):
        from chat_bridge.core.config import Settings

        settings = Settings(_env_file=None, downstream_chat_path="api/chat")

        assert settings.downstream_chat_path == "/api/chat"

    def test_log_level_normalized(self):
        from chat_bridge.core.config import Settings

        settings = Settings(_env_file=None, log_level="debug")

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        from chat_bridge.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_port_out_of_range_rejected(self):
        from chat_bridge.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, port=70000)

    def test_timeout_must_be_positive(self):
        from chat_bridge.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(_env_file=None, downstream_timeout_seconds=0)


class TestSettingsSingleton:
    """get_settings() caching."""

    def test_get_settings_returns_same_instance(self):
        from chat_bridge.core.config import get_settings

        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
