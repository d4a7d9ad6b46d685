from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tiksync.core.normalize import parse_tax_rate


class LookupStatus(enum.Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


@dataclass(slots=True)
class RemoteOrder:
    id: int
    number: str | None
    external_order_id: str


@dataclass(slots=True)
class OrderLookup:
    status: LookupStatus
    order: RemoteOrder | None = None
    error: str | None = None

    @property
    def exists(self) -> bool:
        return self.status is LookupStatus.FOUND


@dataclass(slots=True)
class Article:
    id: int
    number: str
    name: str
    tax_id: int | None = None
    tax_rate: Decimal | None = None

    @classmethod
    def from_payload(cls, sku: str, data: dict[str, Any]) -> Article:
        main_detail = data.get("mainDetail") or {}
        tax = data.get("tax") or {}
        tax_id = data.get("taxId") or tax.get("id") or main_detail.get("taxId")
        return cls(
            id=int(data["id"]),
            number=str(main_detail.get("number") or sku),
            name=str(data.get("name") or ""),
            tax_id=int(tax_id) if tax_id is not None else None,
            tax_rate=parse_tax_rate(tax.get("tax")),
        )
