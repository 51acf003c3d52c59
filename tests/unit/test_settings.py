"""Tests for configuration settings."""

import os

import pytest
from pydantic import ValidationError

from toolchat.config.settings import ToolChatSettings, get_settings
from toolchat.core.client.turn import CallConvention


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Isolate settings from the developer's environment and .env file."""
    for name in list(os.environ):
        if name.upper().startswith("TOOLCHAT_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


class TestToolChatSettings:
    """Test cases for ToolChatSettings."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        settings = ToolChatSettings()

        assert settings.model == "GigaChat"
        assert settings.temperature == 0.7
        assert settings.max_tokens == 1024
        assert settings.timeout == 60.0
        assert settings.verify_ssl is True
        assert settings.max_function_calls == 5
        assert settings.call_convention == CallConvention.INLINE_MARKER
        assert settings.stream_chunk_size == 5
        assert settings.stream_chunk_delay == 0.05
        assert settings.log_level == "WARNING"
        assert settings.base_url == "https://gigachat.devices.sberbank.ru/"

    def test_credentials_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test credential loading from environment variable."""
        monkeypatch.setenv("TOOLCHAT_CREDENTIALS", "dGVzdDp0ZXN0")
        settings = ToolChatSettings()
        assert settings.credentials == "dGVzdDp0ZXN0"

    def test_env_file(self, tmp_path) -> None:
        """Test that the .env file in the working directory is read."""
        (tmp_path / ".env").write_text("TOOLCHAT_MODEL=GigaChat-Pro\nTOOLCHAT_MAX_FUNCTION_CALLS=2\n")
        settings = ToolChatSettings()
        assert settings.model == "GigaChat-Pro"
        assert settings.max_function_calls == 2

    def test_env_overrides_env_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        (tmp_path / ".env").write_text("TOOLCHAT_MODEL=from-file\n")
        monkeypatch.setenv("TOOLCHAT_MODEL", "from-env")
        assert ToolChatSettings().model == "from-env"

    def test_invalid_log_level(self) -> None:
        """Test validation of invalid log level."""
        with pytest.raises(ValidationError):
            ToolChatSettings(log_level="INVALID")

    def test_valid_log_level(self) -> None:
        """Test validation of valid log levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        for level in valid_levels:
            settings = ToolChatSettings(log_level=level)
            assert settings.log_level == level

        assert ToolChatSettings(log_level="info").log_level == "INFO"

    def test_temperature_validation(self) -> None:
        """Test temperature validation."""
        # Valid temperatures
        ToolChatSettings(temperature=0.0)
        ToolChatSettings(temperature=1.0)
        ToolChatSettings(temperature=2.0)

        # Invalid temperatures
        with pytest.raises(ValidationError):
            ToolChatSettings(temperature=-0.1)
        with pytest.raises(ValidationError):
            ToolChatSettings(temperature=2.1)

    def test_numeric_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ToolChatSettings(max_tokens=0)
        with pytest.raises(ValidationError):
            ToolChatSettings(timeout=0)
        with pytest.raises(ValidationError):
            ToolChatSettings(max_function_calls=-1)
        with pytest.raises(ValidationError):
            ToolChatSettings(stream_chunk_size=0)

        assert ToolChatSettings(max_function_calls=0).max_function_calls == 0

    @pytest.mark.parametrize("value, expected", [
        ("structured", CallConvention.STRUCTURED),
        ("STRUCTURED", CallConvention.STRUCTURED),
        ("Inline-Marker", CallConvention.INLINE_MARKER),
        (CallConvention.STRUCTURED, CallConvention.STRUCTURED),
    ])
    def test_call_convention(self, value, expected) -> None:
        assert ToolChatSettings(call_convention=value).call_convention == expected

    def test_invalid_call_convention(self) -> None:
        with pytest.raises(ValidationError):
            ToolChatSettings(call_convention="telepathy")

    def test_call_convention_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOOLCHAT_CALL_CONVENTION", "Structured")
        assert ToolChatSettings().call_convention == CallConvention.STRUCTURED

    def test_is_configured(self) -> None:
        """Test is_configured property."""
        assert not ToolChatSettings().is_configured
        assert ToolChatSettings(credentials="abc").is_configured
        assert ToolChatSettings(access_token="token").is_configured

    def test_effective_log_level(self) -> None:
        assert ToolChatSettings(log_level="ERROR").effective_log_level == "ERROR"
        assert ToolChatSettings(log_level="ERROR", debug=True).effective_log_level == "DEBUG"

    def test_to_dict_masks_secrets(self) -> None:
        """Test that to_dict masks sensitive data."""
        settings = ToolChatSettings(credentials="secret-key-123", access_token="token-456")
        data = settings.to_dict()
        assert data["credentials"] == "***masked***"
        assert data["access_token"] == "***masked***"
        assert data["call_convention"] == "inline_marker"
        assert data["model"] == "GigaChat"

    def test_to_dict_leaves_unset_secrets(self) -> None:
        assert ToolChatSettings().to_dict()["credentials"] is None

    def test_get_settings_overrides(self) -> None:
        settings = get_settings(model="GigaChat-Max", max_function_calls=1)
        assert settings.model == "GigaChat-Max"
        assert settings.max_function_calls == 1
