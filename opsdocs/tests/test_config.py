"""Tests for backend configuration helpers."""

from __future__ import annotations

import importlib
import re

import opsdocs.config as config


def test_default_cors_regex_matches_private_ipv4_origin(monkeypatch):
    """The default regex should match private IPv4 origins with custom ports."""

    monkeypatch.delenv("CORS_ALLOW_ORIGIN_REGEX", raising=False)
    settings = config.Settings()

    pattern = re.compile(settings.cors_allow_origin_regex)

    assert pattern.fullmatch("http://192.168.68.136:3600")


def test_blank_cors_regex_disables_pattern(monkeypatch):
    """Blank regex env vars should be treated as disabled (None)."""

    monkeypatch.setenv("CORS_ALLOW_ORIGIN_REGEX", "   ")
    settings = config.Settings()

    assert settings.cors_allow_origin_regex is None


def test_cors_origins_are_split_on_commas(monkeypatch):
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, ,http://b.test")

    assert config.Settings().cors_allow_origins == ("http://a.test", "http://b.test")


def test_database_url_falls_back_to_legacy_variable(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DB_URL", "sqlite:///legacy.db")

    assert config.Settings().database_url == "sqlite:///legacy.db"


def test_fallback_section_settings_are_normalised(monkeypatch):
    monkeypatch.setenv("OPSDOCS_FALLBACK_SECTION_TITLE", "   ")
    monkeypatch.setenv("OPSDOCS_FALLBACK_SECTION_ORDER", "0")

    settings = config.Settings()

    assert settings.fallback_section_title == config.DEFAULT_FALLBACK_SECTION_TITLE
    assert settings.fallback_section_order == config.DEFAULT_FALLBACK_SECTION_ORDER


def test_repair_flag_and_search_limit(monkeypatch):
    monkeypatch.setenv("OPSDOCS_REPAIR_ON_READ", "off")
    monkeypatch.setenv("OPSDOCS_SEARCH_LIMIT", "100000")

    settings = config.Settings()

    assert settings.repair_on_read is False
    assert settings.search_limit == 500


def test_fallback_title_loaded_from_env_file(monkeypatch, tmp_path):
    """Values from the file named by OPSDOCS_ENV_FILE should be picked up."""

    env_file = tmp_path / ".env"
    env_file.write_text("OPSDOCS_FALLBACK_SECTION_TITLE=Recovered\n", encoding="utf-8")

    monkeypatch.delenv("OPSDOCS_FALLBACK_SECTION_TITLE", raising=False)
    monkeypatch.setenv("OPSDOCS_ENV_FILE", str(env_file))

    module = importlib.reload(config)

    settings = module.Settings()

    assert settings.fallback_section_title == "Recovered"

    monkeypatch.delenv("OPSDOCS_FALLBACK_SECTION_TITLE", raising=False)
