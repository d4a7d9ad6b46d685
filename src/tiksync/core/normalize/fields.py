from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Mapping

from dateutil import parser as dt_parser

if TYPE_CHECKING:
    from .models import OrderRow

CENT = Decimal("0.01")
UNKNOWN_NAME = "Unknown"

_MONEY_JUNK = re.compile(r"[^\d,.\-]")
_NUMBER = r"\d+\s*[a-zA-Z]?(?:\s*[-/]\s*\d+\s*[a-zA-Z]?)?"
STREET_WITH_NUMBER_PATTERN = re.compile(
    rf"^(?P<street>.*?\D)[\s,]*\(?(?P<number>{_NUMBER})\)?$"
)
HOUSE_NUMBER_PATTERN = re.compile(rf"^\(?(?P<number>{_NUMBER})\)?$")


def parse_money(value: str | None) -> Decimal:
    """Parse ``"12,34 EUR"`` or ``"12.34 EUR"`` into ``Decimal("12.34")``.

    The last ``,`` or ``.`` is the decimal separator; any earlier one is a
    thousands separator. Currency codes and symbols are dropped.
    """
    if value is None:
        raise ValueError("money value is missing")
    cleaned = _MONEY_JUNK.sub("", value)
    if not cleaned or cleaned in {"-", ".", ","}:
        raise ValueError(f"not a money value: {value!r}")

    separator_pos = max(cleaned.rfind(","), cleaned.rfind("."))
    if separator_pos >= 0:
        integer_part = cleaned[:separator_pos].replace(",", "").replace(".", "")
        cleaned = f"{integer_part}.{cleaned[separator_pos + 1:]}"

    try:
        return Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValueError(f"not a money value: {value!r}") from exc


def parse_money_or(value: str | None, default: Decimal = Decimal("0")) -> Decimal:
    if not value:
        return default
    try:
        return parse_money(value)
    except ValueError:
        return default


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_quantity(value: str | None) -> int:
    try:
        number = Decimal((value or "").strip())
    except InvalidOperation as exc:
        raise ValueError(f"quantity is not numeric: {value!r}") from exc
    if not number.is_finite() or number != number.to_integral_value() or number <= 0:
        raise ValueError(f"quantity must be a positive integer: {value!r}")
    return int(number)


def parse_tax_rate(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        rate = Decimal(str(value).replace(",", ".").rstrip("%").strip())
    except InvalidOperation:
        return None
    return rate if rate >= 0 else None


def net_amount(gross: Decimal, tax_rate: Decimal) -> Decimal:
    """``gross / (1 + rate/100)`` at full precision; round with :func:`to_cents`."""
    return gross / (Decimal("1") + tax_rate / Decimal("100"))


def split_street(street: str, house_number: str = "") -> tuple[str, str]:
    """Return ``(street_name, number)``.

    A number embedded at the end of ``street`` wins ("Hauptstr. 12a",
    "Hauptstr. 12-14", "Hauptstr. (7/1)"). Otherwise ``house_number`` is used
    if it looks like a house number. The number is empty when neither matches.
    """
    street = " ".join(street.split())
    match = STREET_WITH_NUMBER_PATTERN.match(street)
    if match:
        return match.group("street").strip(" ,"), _compact_number(match.group("number"))

    candidate = " ".join(house_number.split())
    match = HOUSE_NUMBER_PATTERN.match(candidate)
    if match:
        return street, _compact_number(match.group("number"))
    return street, ""


def _compact_number(number: str) -> str:
    return re.sub(r"\s*([-/])\s*", r"\1", number).replace(" ", "")


def split_recipient_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split()
    last_name = parts.pop() if parts else ""
    first_name = " ".join(parts)
    return first_name or UNKNOWN_NAME, last_name or UNKNOWN_NAME


def parse_timestamp(value: str | None, dayfirst: bool = True) -> datetime | None:
    if not value or not value.strip():
        return None
    try:
        return dt_parser.parse(value, dayfirst=dayfirst)
    except (ValueError, OverflowError):
        return None


def apply_defaults(
    row: OrderRow,
    defaults: Mapping[str, str],
    logger: logging.Logger | logging.LoggerAdapter,
) -> OrderRow:
    """Fill blank fields of ``row`` listed in ``defaults`` (attribute -> value)."""
    changes: dict[str, str] = {}
    for attr, default in defaults.items():
        value = getattr(row, attr, "")
        if value is None or not str(value).strip():
            logger.warning(
                "Order %s: field %s is empty, using default %r", row.order_id, attr, default
            )
            changes[attr] = default
    return replace(row, **changes) if changes else row
