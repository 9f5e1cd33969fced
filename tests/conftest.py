from __future__ import annotations

import logging
from pathlib import Path

import pytest

from storefront.config import Settings
from storefront.core.db import StorefrontRepository

STOREFRONT_ENV = [
    "STOREFRONT_HOME",
    "STOREFRONT_DATA_DIR",
    "STOREFRONT_DB_PATH",
    "STOREFRONT_LOG_DIR",
    "STOREFRONT_EXPORT_DIR",
    "STOREFRONT_OFFER_CODE_USAGE_POLICY",
    "STOREFRONT_DEFAULT_CURRENCY",
    "STOREFRONT_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:  # noqa: ANN001
    for name in STOREFRONT_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def repository(tmp_path: Path):
    db_path = tmp_path / "storefront.sqlite3"
    repo = StorefrontRepository(db_path)
    repo.migrate()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("storefront-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger
