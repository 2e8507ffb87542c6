"""Tests for service bootstrap and settings."""

import logging
from unittest.mock import patch

import pytest

from wg_manager import main
from wg_manager.config import Settings, settings
from wg_manager.core import ConfigParseError, WireGuardConfigService


@pytest.fixture
def isolated_settings(monkeypatch, temp_dir):
    monkeypatch.setattr(settings, "DATA_DIR", temp_dir)
    main.get_config_service.cache_clear()
    yield settings
    main.get_config_service.cache_clear()


class TestSettings:
    """Tests for Settings defaults."""

    def test_defaults(self):
        s = Settings()
        assert s.CONFIG_FILENAME == "wireguard.json"
        assert s.DEFAULT_MTU == 1420
        assert s.DEFAULT_DNS == "1.1.1.1,8.8.8.8"

    def test_config_path(self, temp_dir):
        s = Settings(DATA_DIR=temp_dir, CONFIG_FILENAME="wg.json")
        assert s.config_path == temp_dir / "wg.json"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_MTU", "1280")
        assert Settings().DEFAULT_MTU == 1280


class TestBootstrap:
    """Tests for get_config_service / configure_logging."""

    def test_service_is_shared(self, isolated_settings):
        with patch("wg_manager.core.wireguard_service.shutil.which", return_value="/usr/bin/wg"):
            first = main.get_config_service()
            second = main.get_config_service()

        assert isinstance(first, WireGuardConfigService)
        assert first is second
        assert first.config_path == isolated_settings.DATA_DIR / "wireguard.json"
        assert first.config_path == isolated_settings.config_path

    def test_warns_when_wg_missing(self, isolated_settings, caplog):
        with patch("wg_manager.core.wireguard_service.shutil.which", return_value=None):
            with caplog.at_level(logging.WARNING, logger="wg_manager.main"):
                main.get_config_service()

        assert "not found on PATH" in caplog.text

    def test_malformed_document_blocks_startup(self, isolated_settings):
        (isolated_settings.DATA_DIR / "wireguard.json").write_text("[", encoding="utf-8")

        with pytest.raises(ConfigParseError):
            main.get_config_service()

    def test_configure_logging_accepts_level(self):
        main.configure_logging("debug")

    def test_configure_logging_defaults_to_settings(self):
        main.configure_logging()
