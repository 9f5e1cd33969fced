from __future__ import annotations

import platform
import sys

from storefront.config import Settings
from storefront.core.db import StorefrontRepository, resolve_usage_policy
from storefront.core.logging import resolve_level
from storefront.errors import UnknownUsagePolicyError


def run_doctor_checks(settings: Settings) -> list[dict[str, str]]:
    checks: list[dict[str, str]] = []

    checks.append(
        {
            "check": "python_version",
            "status": "ok" if sys.version_info >= (3, 10) else "warn",
            "detail": platform.python_version(),
        }
    )

    checks.append(
        {
            "check": "db_parent",
            "status": "ok" if settings.db_path.parent.exists() else "warn",
            "detail": str(settings.db_path.parent),
        }
    )

    try:
        resolve_usage_policy(settings.offer_code_usage_policy)
        checks.append(
            {
                "check": "offer_code_usage_policy",
                "status": "ok",
                "detail": settings.offer_code_usage_policy,
            }
        )
    except UnknownUsagePolicyError as exc:
        checks.append({"check": "offer_code_usage_policy", "status": "error", "detail": str(exc)})

    try:
        resolve_level(settings.log_level)
        checks.append({"check": "log_level", "status": "ok", "detail": settings.log_level})
    except ValueError as exc:
        checks.append({"check": "log_level", "status": "error", "detail": str(exc)})

    if not settings.db_path.exists():
        checks.append(
            {
                "check": "db_schema",
                "status": "warn",
                "detail": "База не создана, выполните `storefront init`",
            }
        )
        return checks

    with StorefrontRepository(settings.db_path) as repository:
        repository.migrate()
        duplicates = repository.duplicate_code_diagnostics()
        counts = repository.fetch_counts()

    checks.append(
        {
            "check": "db_schema",
            "status": "ok",
            "detail": ", ".join(f"{table}={count}" for table, count in counts.items()),
        }
    )
    checks.append(
        {
            "check": "duplicate_offer_codes",
            "status": "warn" if duplicates else "ok",
            "detail": ", ".join(row["code"] for row in duplicates) or "нет",
        }
    )

    return checks
