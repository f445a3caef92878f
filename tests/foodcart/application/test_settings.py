"""Tests for environment-driven settings."""

from decimal import Decimal

import pydantic
import pytest
from foodcart.cart.pricing import BASE_DELIVERY_FEE, TAX_RATE
from foodcart.config import Settings


@pytest.fixture()
def clean_env(monkeypatch):
    for name in (
        "FOODCART_ENV",
        "ENVIRONMENT",
        "LOG_LEVEL",
        "FOODCART_LOG_DIR",
        "FOODCART_TAX_RATE",
        "FOODCART_BASE_DELIVERY_FEE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettingsFromEnv:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.env == "development"
        assert settings.log_level == "DEBUG"
        assert settings.log_dir is None
        assert settings.tax_rate == TAX_RATE
        assert settings.base_delivery_fee == BASE_DELIVERY_FEE

    def test_environment_picks_log_level(self, clean_env):
        clean_env.setenv("FOODCART_ENV", "production")
        settings = Settings.from_env()
        assert settings.env == "production"
        assert settings.log_level == "INFO"

    def test_log_level_override(self, clean_env):
        clean_env.setenv("FOODCART_ENV", "test")
        clean_env.setenv("LOG_LEVEL", "error")
        assert Settings.from_env().log_level == "ERROR"

    def test_pricing_overrides(self, clean_env):
        clean_env.setenv("FOODCART_TAX_RATE", "0.0625")
        clean_env.setenv("FOODCART_BASE_DELIVERY_FEE", "1.99")

        policy = Settings.from_env().pricing_policy()

        assert policy.tax_rate == Decimal("0.0625")
        assert policy.base_delivery_fee == Decimal("1.99")

    def test_invalid_tax_rate(self, clean_env):
        clean_env.setenv("FOODCART_TAX_RATE", "1.5")
        with pytest.raises(pydantic.ValidationError):
            Settings.from_env()

    def test_blank_log_dir_means_console_only(self, clean_env):
        clean_env.setenv("FOODCART_LOG_DIR", "")
        assert Settings.from_env().log_dir is None


class TestConfigureLogging:
    def test_writes_log_files(self, tmp_path):
        import logging

        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        try:
            Settings(env="test", log_level="WARNING", log_dir=str(tmp_path)).configure_logging()
            assert (tmp_path / "foodcart.log").exists()
            assert (tmp_path / "foodcart_error.log").exists()
        finally:
            for handler in root.handlers:
                if handler not in handlers:
                    handler.close()
            root.handlers = handlers
            root.setLevel(level)
