from __future__ import annotations

from pathlib import Path

from storefront.config import Settings


def test_settings_defaults_under_base_dir(tmp_path: Path) -> None:
    settings = Settings.load(base_dir=tmp_path)

    assert settings.root_dir == tmp_path.resolve()
    assert settings.db_path == tmp_path.resolve() / "data" / "storefront.sqlite3"
    assert settings.offer_code_usage_policy == "redeemed"
    assert settings.default_currency == "USD"
    assert settings.log_level == "INFO"


def test_settings_reads_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STOREFRONT_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("STOREFRONT_DB_PATH", str(tmp_path / "custom.db"))
    monkeypatch.setenv("STOREFRONT_OFFER_CODE_USAGE_POLICY", " Persisted ")
    monkeypatch.setenv("STOREFRONT_DEFAULT_CURRENCY", "eur")
    monkeypatch.setenv("STOREFRONT_LOG_LEVEL", "debug")

    settings = Settings.load(base_dir=tmp_path)

    assert settings.root_dir == (tmp_path / "home").resolve()
    assert settings.db_path == (tmp_path / "custom.db").resolve()
    assert settings.offer_code_usage_policy == "persisted"
    assert settings.default_currency == "EUR"
    assert settings.log_level == "DEBUG"


def test_ensure_directories_creates_layout(settings: Settings) -> None:
    assert settings.data_dir.is_dir()
    assert settings.logs_dir.is_dir()
    assert settings.exports_dir.is_dir()
