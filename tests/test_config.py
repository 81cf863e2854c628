"""
Tests for runtime settings.
"""

import pytest

from hescore.config import HEScoreSettings
from hescore.errors import ConfigValidationError


class TestSettings:
    """Tests for HEScoreSettings."""

    def test_defaults(self, monkeypatch):
        for name in ("HS_ENVIRONMENT", "HS_LOG_LEVEL", "HS_KEY_DIR", "HS_SECRET_KEY_FILE_MODE"):
            monkeypatch.delenv(name, raising=False)

        settings = HEScoreSettings(_env_file=None)

        assert settings.ENVIRONMENT == "development"
        assert settings.LOG_LEVEL == "INFO"
        assert settings.KEY_DIR is None
        assert settings.SECRET_KEY_FILE_MODE == 0o600
        assert not settings.is_production()

    def test_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HS_ENVIRONMENT", "production")
        monkeypatch.setenv("HS_LOG_LEVEL", "debug")
        monkeypatch.setenv("HS_KEY_DIR", str(tmp_path))

        settings = HEScoreSettings(_env_file=None)

        assert settings.is_production()
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.KEY_DIR == str(tmp_path)

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("HS_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigValidationError) as exc_info:
            HEScoreSettings(_env_file=None)

        assert exc_info.value.details["config_key"] == "LOG_LEVEL"
