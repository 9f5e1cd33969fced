from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from storefront.core.db.usage import DEFAULT_USAGE_POLICY
from storefront.domain.money import DEFAULT_CURRENCY


@dataclass(slots=True)
class Settings:
    root_dir: Path
    data_dir: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path
    offer_code_usage_policy: str = DEFAULT_USAGE_POLICY
    default_currency: str = DEFAULT_CURRENCY
    log_level: str = "INFO"

    @classmethod
    def load(cls, base_dir: Path | None = None) -> Settings:
        load_dotenv(override=False)

        root_env = os.getenv("STOREFRONT_HOME")
        root_dir = Path(root_env).expanduser().resolve() if root_env else (base_dir or Path.cwd()).resolve()

        data_dir = Path(os.getenv("STOREFRONT_DATA_DIR", root_dir / "data")).expanduser().resolve()
        db_path = Path(os.getenv("STOREFRONT_DB_PATH", data_dir / "storefront.sqlite3")).expanduser().resolve()
        logs_dir = Path(os.getenv("STOREFRONT_LOG_DIR", root_dir / "logs")).expanduser().resolve()
        exports_dir = Path(os.getenv("STOREFRONT_EXPORT_DIR", root_dir / "exports")).expanduser().resolve()

        usage_policy = os.getenv("STOREFRONT_OFFER_CODE_USAGE_POLICY", DEFAULT_USAGE_POLICY).strip().lower()
        default_currency = os.getenv("STOREFRONT_DEFAULT_CURRENCY", DEFAULT_CURRENCY).strip().upper()
        log_level = os.getenv("STOREFRONT_LOG_LEVEL", "INFO").strip().upper()

        return cls(
            root_dir=root_dir,
            data_dir=data_dir,
            db_path=db_path,
            logs_dir=logs_dir,
            exports_dir=exports_dir,
            offer_code_usage_policy=usage_policy,
            default_currency=default_currency,
            log_level=log_level,
        )

    def ensure_directories(self) -> None:
        for path in [self.root_dir, self.data_dir, self.logs_dir, self.exports_dir]:
            path.mkdir(parents=True, exist_ok=True)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
