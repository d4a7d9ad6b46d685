from .fields import (
    apply_defaults,
    net_amount,
    parse_money,
    parse_money_or,
    parse_quantity,
    parse_tax_rate,
    parse_timestamp,
    split_recipient_name,
    split_street,
    to_cents,
)
from .models import Address, CustomerInfo, LineItem, NormalizedOrder, OrderRow

__all__ = [
    "Address",
    "CustomerInfo",
    "LineItem",
    "NormalizedOrder",
    "OrderRow",
    "apply_defaults",
    "net_amount",
    "parse_money",
    "parse_money_or",
    "parse_quantity",
    "parse_tax_rate",
    "parse_timestamp",
    "split_recipient_name",
    "split_street",
    "to_cents",
]
