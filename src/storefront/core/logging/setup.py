from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s"


class CorrelationIdFilter(logging.Filter):
    """Подставляет correlation_id в записи, у которых его нет."""

    def __init__(self, correlation_id: str):
        super().__init__()
        self._correlation_id = correlation_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = self._correlation_id
        return True


def _attach(
    root: logging.Logger,
    handler: logging.Handler,
    formatter: logging.Formatter,
    correlation_filter: logging.Filter,
) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(correlation_filter)
    root.addHandler(handler)


def resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Неизвестный уровень логирования: {level!r}")
    return resolved


def configure_logging(
    log_dir: Path,
    correlation_id: str,
    level: int | str = logging.INFO,
    console_level: int = logging.WARNING,
) -> list[Path]:
    """
    Настраивает корневой логгер: консоль (от console_level), текстовый файл и JSON lines.

    Файлы ротируются по UTC-дню: storefront-YYYY-MM-DD.log / .jsonl.
    Повторный вызов закрывает ранее установленные обработчики.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    utc_day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    text_path = log_dir / f"storefront-{utc_day}.log"
    json_path = log_dir / f"storefront-{utc_day}.jsonl"

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(resolve_level(level))

    correlation_filter = CorrelationIdFilter(correlation_id)
    text_formatter = logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler()
    console.setLevel(console_level)
    _attach(root, console, text_formatter, correlation_filter)
    _attach(root, logging.FileHandler(text_path, encoding="utf-8"), text_formatter, correlation_filter)
    _attach(
        root,
        logging.FileHandler(json_path, encoding="utf-8"),
        jsonlogger.JsonFormatter(fmt=JSON_FORMAT),
        correlation_filter,
    )
    return [text_path, json_path]


def get_logger(name: str, correlation_id: str) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logging.getLogger(name), extra={"correlation_id": correlation_id})
