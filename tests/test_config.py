"""
Tests for settings, logging setup and the exception hierarchy.
"""
import logging
from pathlib import Path

import pytest

from jove.config import BASE_DIR, get_settings
from jove.exceptions import (
    CatalogueRecordNotFoundError,
    MixedPricingModeError,
    PricingError,
    UnknownPriceFieldError,
)
from jove.logging_config import setup_logging
from jove.markets import Market


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("JOVE_DB_PATH")
        get_settings.cache_clear()
        settings = get_settings()
        assert settings.db_path == BASE_DIR / "data" / "catalogue.db"
        assert settings.storage_public_url == "/customization-item"
        assert settings.default_market is Market.LB
        assert settings.whitelist_path is None
        assert settings.log_level == "INFO"
        assert settings.asset_probe_timeout == 5.0

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("JOVE_DEFAULT_MARKET", "AU")
        monkeypatch.setenv("JOVE_WHITELIST_PATH", str(tmp_path / "w.csv"))
        monkeypatch.setenv("JOVE_LOG_LEVEL", "debug")
        monkeypatch.setenv("JOVE_ASSET_PROBE_TIMEOUT", "2.5")
        settings = get_settings()
        assert settings.db_path == tmp_path / "catalogue.db"
        assert settings.default_market is Market.AU
        assert settings.whitelist_path == Path(tmp_path / "w.csv")
        assert settings.log_level == "DEBUG"
        assert settings.asset_probe_timeout == 2.5

    def test_invalid_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("JOVE_DEFAULT_MARKET", "atlantis")
        monkeypatch.setenv("JOVE_ASSET_PROBE_TIMEOUT", "soon")
        settings = get_settings()
        assert settings.default_market is Market.LB
        assert settings.asset_probe_timeout == 5.0


class TestSetupLogging:
    def test_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG")
            setup_logging("WARNING")
            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
            assert "%(levelname)-8s" in root.handlers[0].formatter._fmt
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_unknown_level_defaults_to_info(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("chatty")
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestExceptions:
    def test_str_and_repr(self):
        error = CatalogueRecordNotFoundError("jewelry_items", "ring-1")
        assert str(error) == "No jewelry_items record with id 'ring-1'"
        assert "table=jewelry_items" in repr(error)
        assert repr(PricingError("plain")) == "PricingError('plain')"

    def test_hierarchy(self):
        for error in (
            MixedPricingModeError("x", ["price_lab_grown"], ["price_gold"]),
            UnknownPriceFieldError("price_eu", "option"),
        ):
            assert isinstance(error, PricingError)
        with pytest.raises(ValueError):
            raise UnknownPriceFieldError("price_eu", "option")
