from __future__ import annotations

from pathlib import Path

import pandas as pd

from storefront.core.db import StorefrontRepository


def export_data(repository: StorefrontRepository, formats: list[str], out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    tables = repository.fetch_export_rows()
    frames = {name: pd.DataFrame(rows) for name, rows in tables.items()}

    created_files: list[Path] = []
    if "csv" in formats:
        for name, df in frames.items():
            csv_path = (out_dir / f"storefront_{name}.csv").resolve()
            df.to_csv(csv_path, index=False, encoding="utf-8-sig")
            created_files.append(csv_path)

    if "xlsx" in formats:
        xlsx_path = (out_dir / "storefront_export.xlsx").resolve()
        with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
            for name, df in frames.items():
                df.to_excel(writer, index=False, sheet_name=name)
        created_files.append(xlsx_path)

    return created_files
