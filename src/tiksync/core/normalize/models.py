from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping

from tiksync.core.dedupe import clean_external_id

from .fields import net_amount

# normalized export header -> OrderRow attribute
COLUMN_MAP = {
    "OrderID": "order_id",
    "SellerSKU": "seller_sku",
    "ProductName": "product_name",
    "Variation": "variation",
    "Quantity": "quantity",
    "SKUUnitOriginalPrice": "unit_original_price",
    "SKUSellerDiscount": "seller_discount",
    "SKUPlatformDiscount": "platform_discount",
    "ShippingFeeAfterDiscount": "shipping_fee_after_discount",
    "OriginalShippingFee": "original_shipping_fee",
    "ShippingFeeSellerDiscount": "shipping_seller_discount",
    "ShippingFeePlatformDiscount": "shipping_platform_discount",
    "OrderAmount": "order_amount",
    "CreatedTime": "created_time",
    "PaidTime": "paid_time",
    "Recipient": "recipient",
    "Phone#": "phone",
    "Email": "email",
    "Country": "country",
    "Zipcode": "zipcode",
    "City": "city",
    "StreetName": "street_name",
    "HouseNameorNumber": "house_number",
    "BuyerMessage": "buyer_message",
}


@dataclass(slots=True)
class OrderRow:
    order_id: str
    seller_sku: str = ""
    product_name: str = ""
    variation: str = ""
    quantity: str = ""
    unit_original_price: str = ""
    seller_discount: str = ""
    platform_discount: str = ""
    shipping_fee_after_discount: str = ""
    original_shipping_fee: str = ""
    shipping_seller_discount: str = ""
    shipping_platform_discount: str = ""
    order_amount: str = ""
    created_time: str = ""
    paid_time: str = ""
    recipient: str = ""
    phone: str = ""
    email: str = ""
    country: str = ""
    zipcode: str = ""
    city: str = ""
    street_name: str = ""
    house_number: str = ""
    buyer_message: str = ""
    extra: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, str]) -> OrderRow:
        known: dict[str, str] = {}
        extra: dict[str, str] = {}
        for header, value in raw.items():
            attr = COLUMN_MAP.get(header)
            if attr is None:
                extra[header] = value
            else:
                known[attr] = value
        known["order_id"] = clean_external_id(known.get("order_id"))
        return cls(**known, extra=extra)


@dataclass(slots=True)
class Address:
    first_name: str
    last_name: str
    street: str
    street_number: str
    zipcode: str
    city: str
    country_id: int
    phone: str | None = None


@dataclass(slots=True)
class CustomerInfo:
    email: str
    first_name: str
    last_name: str
    phone: str | None = None


@dataclass(slots=True)
class LineItem:
    sku: str
    article_id: int | None
    name: str
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    tax_id: int
    is_discount: bool = False

    @property
    def gross(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def net(self) -> Decimal:
        return net_amount(self.gross, self.tax_rate)


@dataclass(slots=True)
class NormalizedOrder:
    external_order_id: str
    customer: CustomerInfo
    address: Address
    customer_id: int | None = None
    items: list[LineItem] = field(default_factory=list)
    invoice_shipping: Decimal = Decimal("0")
    shipping_tax_rate: Decimal = Decimal("0")
    reported_amount: Decimal | None = None
    order_time: datetime | None = None
    cleared_time: datetime | None = None
    comment: str = ""

    @property
    def purchased_items(self) -> list[LineItem]:
        return [item for item in self.items if not item.is_discount]

    @property
    def invoice_amount(self) -> Decimal:
        return sum((item.gross for item in self.items), Decimal("0")) + self.invoice_shipping

    @property
    def invoice_shipping_net(self) -> Decimal:
        return net_amount(self.invoice_shipping, self.shipping_tax_rate)

    @property
    def invoice_amount_net(self) -> Decimal:
        return sum((item.net for item in self.items), Decimal("0")) + self.invoice_shipping_net
