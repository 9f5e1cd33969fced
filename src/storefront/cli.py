from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path

import typer
from dateutil import parser as dt_parser
from rich import print

from storefront.config import Settings
from storefront.core.db import StorefrontRepository
from storefront.core.logging import configure_logging, get_logger
from storefront.domain import Money, Offer, OfferCode, OfferDiscountType, OfferType
from storefront.errors import StorefrontError
from storefront.services import OfferCodeService, export_data, run_doctor_checks

app = typer.Typer(no_args_is_help=True, help="Storefront CLI: предложения, коды и адреса")
offer_app = typer.Typer(no_args_is_help=True, help="Предложения (offers)")
code_app = typer.Typer(no_args_is_help=True, help="Коды предложений (offer codes)")
app.add_typer(offer_app, name="offer")
app.add_typer(code_app, name="code")


def _load_settings(base_dir: Path | None = None) -> Settings:
    settings = Settings.load(base_dir=base_dir)
    settings.ensure_directories()
    return settings


def _open_repository(settings: Settings) -> StorefrontRepository:
    try:
        repository = StorefrontRepository(settings.db_path, usage_policy=settings.offer_code_usage_policy)
    except StorefrontError as exc:
        print(f"[red]Ошибка конфигурации[/red]: {exc}")
        raise typer.Exit(1) from exc
    repository.migrate()
    return repository


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = dt_parser.parse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_decimal(value: str | None, option: str) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise typer.BadParameter(f"{option}: ожидается число, получено {value!r}") from None


@app.command("init")
def init_command(
    base_dir: Path | None = typer.Option(None, help="Корень проекта (по умолчанию текущая папка)"),
) -> None:
    settings = _load_settings(base_dir=base_dir)
    with StorefrontRepository(settings.db_path) as repository:
        executed = repository.migrate()
    print(f"[green]Инициализация завершена[/green]. DB: {settings.db_path}")
    print(f"Миграции: {executed if executed else 'нет новых'}")


@offer_app.command("add")
def offer_add_command(
    name: str = typer.Option(..., help="Название предложения"),
    discount_type: OfferDiscountType = typer.Option(OfferDiscountType.PERCENT_OFF, help="Тип скидки"),
    value: str = typer.Option(..., help="Размер скидки"),
    offer_type: OfferType = typer.Option(OfferType.ORDER, "--type", help="Уровень применения"),
    priority: int = typer.Option(0, help="Приоритет (меньше - раньше)"),
    start: str | None = typer.Option(None, help="Дата начала действия"),
    end: str | None = typer.Option(None, help="Дата окончания действия"),
    code: list[str] = typer.Option([], "--code", help="Код для ручного применения (можно несколько)"),
    automatic: bool = typer.Option(False, "--automatic/--manual", help="Применять автоматически"),
    max_uses_per_customer: int | None = typer.Option(None, help="Лимит на покупателя (0 - без лимита)"),
    max_uses_per_order: int = typer.Option(0, help="Лимит на заказ (0 - без лимита)"),
    order_min_sub_total: str | None = typer.Option(None, help="Минимальная сумма заказа"),
) -> None:
    settings = _load_settings()
    min_sub_total = _parse_decimal(order_min_sub_total, "--order-min-sub-total")

    offer = Offer(
        name=name,
        offer_type=offer_type,
        discount_type=discount_type,
        value=_parse_decimal(value, "--value"),
        priority=priority,
        start_date=_parse_datetime(start),
        end_date=_parse_datetime(end),
        automatically_added=automatic,
        max_uses_per_customer=max_uses_per_customer,
        max_uses_per_order=max_uses_per_order,
        order_min_sub_total=(
            Money(min_sub_total, settings.default_currency) if min_sub_total is not None else None
        ),
        offer_codes=[OfferCode(code=item) for item in code],
    )

    with _open_repository(settings) as repository:
        saved = repository.offers.save(offer)

    print(f"[green]Предложение сохранено[/green]: id={saved.id} {saved.name}")
    for offer_code in saved.offer_codes:
        print(f"- код {offer_code.code} (id={offer_code.id})")


@offer_app.command("list")
def offer_list_command(
    include_archived: bool = typer.Option(False, "--all", help="Включая архивные"),
) -> None:
    settings = _load_settings()
    with _open_repository(settings) as repository:
        offers = repository.offers.read_all_offers(include_archived=include_archived)

    if not offers:
        print("[yellow]Предложений нет[/yellow]")
    for offer in offers:
        status = "active" if offer.is_active() else "inactive"
        codes = ", ".join(c.code or "" for c in offer.offer_codes) or "-"
        print(
            f"- id={offer.id} {offer.name}: {offer.discount_type.value if offer.discount_type else '-'} "
            f"{offer.value} ({status}); коды: {codes}"
        )


@code_app.command("lookup")
def code_lookup_command(
    code: str = typer.Argument(..., help="Код предложения"),
    email: str | None = typer.Option(None, help="Email покупателя"),
) -> None:
    settings = _load_settings()
    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id, level=settings.log_level)
    logger = get_logger("storefront.codes", correlation_id)

    with _open_repository(settings) as repository:
        offer = OfferCodeService(repository=repository, logger=logger).lookup_offer_by_code(
            code, customer_email=email
        )

    if offer is None:
        print(f"[yellow]Код не найден или неактивен[/yellow]: {code}")
        raise typer.Exit(1)
    print(f"[green]Найдено предложение[/green]: id={offer.id} {offer.name}")
    print(f"- скидка: {offer.discount_type.value if offer.discount_type else '-'} {offer.value}")
    print(f"- future credit: {offer.is_future_credit()}")


@code_app.command("used")
def code_used_command(code: str = typer.Argument(..., help="Код предложения")) -> None:
    settings = _load_settings()
    with _open_repository(settings) as repository:
        offer_codes = repository.offer_codes.read_all_offer_codes_by_code(code)
        if not offer_codes:
            print(f"[yellow]Код не найден[/yellow]: {code}")
            raise typer.Exit(1)
        for offer_code in offer_codes:
            used = repository.offer_codes.offer_code_is_used(offer_code)
            print(
                f"- {offer_code.code} (id={offer_code.id}): used={used} "
                f"(policy: {settings.offer_code_usage_policy})"
            )


@code_app.command("redeem")
def code_redeem_command(
    code: str = typer.Argument(..., help="Код предложения"),
    order: str = typer.Option(..., help="Идентификатор заказа"),
    customer: str | None = typer.Option(None, help="Идентификатор покупателя"),
    email: str | None = typer.Option(None, help="Email покупателя"),
) -> None:
    settings = _load_settings()
    correlation_id = uuid.uuid4().hex
    configure_logging(settings.logs_dir, correlation_id=correlation_id, level=settings.log_level)
    logger = get_logger("storefront.codes", correlation_id)

    with _open_repository(settings) as repository:
        service = OfferCodeService(repository=repository, logger=logger)
        try:
            offer_code = service.redeem(code, order_ref=order, customer_ref=customer, customer_email=email)
        except StorefrontError as exc:
            print(f"[red]Погашение отклонено[/red]: {exc}")
            raise typer.Exit(1) from exc

    print(f"[green]Код погашен[/green]: {offer_code.code} uses={offer_code.uses}")


@app.command("export")
def export_command(
    format: str = typer.Option("xlsx,csv", help="Список форматов через запятую: xlsx,csv"),
    out: Path | None = typer.Option(None, help="Папка экспорта"),
) -> None:
    formats = [item.strip().lower() for item in format.split(",") if item.strip()]
    supported = {"xlsx", "csv"}
    unknown = [item for item in formats if item not in supported]
    if unknown:
        raise typer.BadParameter(f"Неподдерживаемые форматы: {unknown}")

    settings = _load_settings()
    out_dir = (out or settings.exports_dir).resolve()

    with _open_repository(settings) as repository:
        files = export_data(repository=repository, formats=formats, out_dir=out_dir)

    print("[green]Экспорт завершен[/green]")
    for file_path in files:
        print(f"- {file_path}")


@app.command("doctor")
def doctor_command() -> None:
    settings = _load_settings()
    checks = run_doctor_checks(settings)

    print("Результаты doctor:")
    for check in checks:
        status = check["status"].upper()
        print(f"- [{status}] {check['check']}: {check['detail']}")
    if any(check["status"] == "error" for check in checks):
        raise typer.Exit(1)


@app.command("duplicates")
def duplicates_command() -> None:
    settings = _load_settings()
    with _open_repository(settings) as repository:
        duplicates = repository.duplicate_code_diagnostics()

    print(f"Дубли кодов: {len(duplicates)}")
    for row in duplicates:
        print(f"- {row['code']}: {row['cnt']} (ids: {row['ids']})")


if __name__ == "__main__":
    app()
