from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from tiksync.config import ShopwareConfig
from tiksync.core.dedupe import internal_comment
from tiksync.core.normalize import (
    Address,
    CustomerInfo,
    LineItem,
    NormalizedOrder,
    OrderRow,
    apply_defaults,
    parse_money,
    parse_money_or,
    parse_quantity,
    parse_timestamp,
    split_recipient_name,
    split_street,
    to_cents,
)
from tiksync.shopware import Article, ShopwareClient, ShopwareError

ORDER_DEFAULTS = {
    "recipient": "Unknown Unknown",
    "street_name": "Unknown",
    "zipcode": "00000",
    "city": "Unknown",
    "shipping_fee_after_discount": "0.00 EUR",
}
ITEM_DEFAULTS = {
    "quantity": "1",
    "unit_original_price": "0.00 EUR",
    "product_name": "TikTok Article",
}
PLACEHOLDER_EMAIL_DOMAIN = "tiktok.invalid"

ITEM_MODE = 0
DISCOUNT_MODE = 3
SELLER_DISCOUNT_SKU = "SELLER_DISCOUNT"
PLATFORM_DISCOUNT_SKU = "PLATFORM_DISCOUNT"
SHIPPING_DISCOUNT_SKU = "SHIPPING_DISCOUNT"
AMOUNT_TOLERANCE = Decimal("0.01")


class MappingError(Exception):
    """The order cannot be mapped; nothing may be submitted for it."""


@dataclass(slots=True)
class MappedOrder:
    order: NormalizedOrder
    payload: dict[str, Any]
    articles: dict[str, Article] = field(default_factory=dict)


def placeholder_email(external_order_id: str) -> str:
    local_part = re.sub(r"[^A-Za-z0-9]+", "", external_order_id).lower() or "buyer"
    return f"{local_part}@{PLACEHOLDER_EMAIL_DOMAIN}"


def _money(value: Decimal) -> float:
    return float(to_cents(value))


def _timestamp(value: datetime | None) -> str | None:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else None


def build_order_payload(order: NormalizedOrder, config: ShopwareConfig) -> dict[str, Any]:
    """Render a :class:`NormalizedOrder` as a Shopware ``POST orders`` body."""
    address = order.address

    def address_block() -> dict[str, Any]:
        return {
            "customerId": order.customer_id,
            "countryId": config.country_id,
            "salutation": "mr",
            "firstName": address.first_name,
            "lastName": address.last_name,
            "street": address.street,
            "streetNumber": address.street_number,
            "zipCode": address.zipcode,
            "city": address.city,
            "phone": address.phone or "",
        }

    details = [
        {
            "articleId": item.article_id,
            "articleNumber": item.sku,
            "articleName": item.name,
            "quantity": item.quantity,
            "price": _money(item.unit_price),
            "taxId": item.tax_id,
            "taxRate": float(item.tax_rate),
            "statusId": 0,
            "mode": DISCOUNT_MODE if item.is_discount else ITEM_MODE,
        }
        for item in order.items
    ]

    order_time = order.order_time or datetime.now(timezone.utc)
    return {
        "customerId": order.customer_id,
        "paymentId": config.payment_method_id,
        "dispatchId": config.shipping_method_id,
        "shopId": config.shop_id,
        "partnerId": "",
        "orderStatusId": config.order_status_id,
        "paymentStatusId": config.payment_status_id,
        "languageIso": "1",
        "currency": "EUR",
        "currencyFactor": 1,
        "net": 0,
        "taxFree": 0,
        "invoiceAmount": _money(order.invoice_amount),
        "invoiceAmountNet": _money(order.invoice_amount_net),
        "invoiceShipping": _money(order.invoice_shipping),
        "invoiceShippingNet": _money(order.invoice_shipping_net),
        "orderTime": _timestamp(order_time),
        "clearedDate": _timestamp(order.cleared_time),
        "transactionId": order.external_order_id,
        "comment": order.comment,
        "internalComment": internal_comment(order.external_order_id),
        "attribute": {"attribute1": order.external_order_id},
        "billing": address_block(),
        "shipping": address_block(),
        "details": details,
    }


class OrderMapper:
    def __init__(
        self,
        config: ShopwareConfig,
        gateway: ShopwareClient,
        logger: logging.Logger | logging.LoggerAdapter,
        dayfirst: bool = True,
    ):
        self.config = config
        self.gateway = gateway
        self.logger = logger
        self.dayfirst = dayfirst

    def map_order(self, external_order_id: str, rows: list[OrderRow]) -> MappedOrder:
        if not rows:
            raise MappingError(f"Order {external_order_id}: no rows")

        first = apply_defaults(
            rows[0],
            {**ORDER_DEFAULTS, "email": placeholder_email(external_order_id)},
            self.logger,
        )
        address, customer = self._build_address(external_order_id, first)

        try:
            customer_id = self.gateway.find_or_create_guest_customer(customer, address)
        except ShopwareError as exc:
            raise MappingError(f"Order {external_order_id}: customer resolution failed: {exc}") from exc

        order = NormalizedOrder(
            external_order_id=external_order_id,
            customer=customer,
            address=address,
            customer_id=customer_id,
            order_time=parse_timestamp(first.created_time, self.dayfirst),
            cleared_time=parse_timestamp(first.paid_time, self.dayfirst),
            comment=first.buyer_message,
        )

        articles: dict[str, Article] = {}
        highest_item: LineItem | None = None
        for row in rows:
            item = self._map_item(external_order_id, row, articles)
            if item is None:
                continue
            order.items.append(item)
            if highest_item is None or item.tax_rate > highest_item.tax_rate:
                highest_item = item
            order.items.extend(self._item_discounts(row, item))

        if not order.purchased_items:
            raise MappingError(f"Order {external_order_id}: none of {len(rows)} line items could be mapped")

        if highest_item is not None and highest_item.tax_rate > 0:
            adjustment_rate, adjustment_tax_id = highest_item.tax_rate, highest_item.tax_id
        else:
            self.logger.warning(
                "Order %s: no taxed line item, using shipping tax rate %s%%",
                external_order_id,
                self.config.shipping_tax_rate,
            )
            adjustment_rate, adjustment_tax_id = self.config.shipping_tax_rate, self.config.default_tax_id

        shipping_discount = parse_money_or(first.shipping_platform_discount)
        if shipping_discount > 0:
            order.items.append(
                LineItem(
                    sku=SHIPPING_DISCOUNT_SKU,
                    article_id=None,
                    name="Shipping Discount (TikTok)",
                    quantity=1,
                    unit_price=-shipping_discount,
                    tax_rate=adjustment_rate,
                    tax_id=adjustment_tax_id,
                    is_discount=True,
                )
            )

        order.invoice_shipping = self._invoice_shipping(external_order_id, first, shipping_discount)
        order.shipping_tax_rate = adjustment_rate

        if first.order_amount:
            try:
                order.reported_amount = parse_money(first.order_amount)
            except ValueError:
                self.logger.warning("Order %s: unparsable order amount %r", external_order_id, first.order_amount)
        if order.reported_amount is not None and abs(order.reported_amount - order.invoice_amount) > AMOUNT_TOLERANCE:
            self.logger.warning(
                "Order %s: export amount %s differs from mapped amount %s",
                external_order_id,
                order.reported_amount,
                to_cents(order.invoice_amount),
            )

        return MappedOrder(order=order, payload=build_order_payload(order, self.config), articles=articles)

    def _build_address(self, external_order_id: str, row: OrderRow) -> tuple[Address, CustomerInfo]:
        first_name, last_name = split_recipient_name(row.recipient)
        street, street_number = split_street(row.street_name, row.house_number)
        if not street_number:
            self.logger.warning(
                "Order %s: no house number in %r / %r", external_order_id, row.street_name, row.house_number
            )
        phone = row.phone or None
        address = Address(
            first_name=first_name,
            last_name=last_name,
            street=street,
            street_number=street_number,
            zipcode=row.zipcode,
            city=row.city,
            country_id=self.config.country_id,
            phone=phone,
        )
        customer = CustomerInfo(email=row.email, first_name=first_name, last_name=last_name, phone=phone)
        return address, customer

    def _map_item(self, external_order_id: str, row: OrderRow, articles: dict[str, Article]) -> LineItem | None:
        row = apply_defaults(row, ITEM_DEFAULTS, self.logger)
        sku = row.seller_sku
        if not sku:
            self.logger.warning("Order %s: row without SellerSKU skipped", external_order_id)
            return None

        try:
            quantity = parse_quantity(row.quantity)
            unit_price = parse_money(row.unit_original_price)
        except ValueError as exc:
            self.logger.warning("Order %s: line %s skipped: %s", external_order_id, sku, exc)
            return None

        article = articles.get(sku)
        if article is None:
            try:
                article = self.gateway.find_article_by_sku(sku)
            except ShopwareError as exc:
                raise MappingError(f"Order {external_order_id}: article lookup for {sku} failed: {exc}") from exc
            if article is None:
                self.logger.error("Order %s: article not found for SKU %s", external_order_id, sku)
                return None
            articles[sku] = article

        tax_rate = article.tax_rate
        if tax_rate is None:
            self.logger.warning(
                "Order %s: article %s has no tax rate, using %s%%",
                external_order_id,
                sku,
                self.config.default_tax_rate,
            )
            tax_rate = self.config.default_tax_rate

        return LineItem(
            sku=sku,
            article_id=article.id,
            name=row.product_name,
            quantity=quantity,
            unit_price=unit_price,
            tax_rate=tax_rate,
            tax_id=article.tax_id if article.tax_id is not None else self.config.default_tax_id,
        )

    def _invoice_shipping(self, external_order_id: str, row: OrderRow, platform_discount: Decimal) -> Decimal:
        """Shipping charged before the platform discount line is applied.

        ``ShippingFeeAfterDiscount`` already has the platform discount taken
        off, so when that discount is emitted as its own line the shipping fee
        must be the pre-platform amount: ``OriginalShippingFee`` minus the
        seller's shipping discount, or the after-discount fee plus the
        platform discount when the original fee is not exported.
        """
        try:
            after_discount = parse_money(row.shipping_fee_after_discount)
        except ValueError:
            self.logger.warning(
                "Order %s: unparsable shipping fee %r, using 0",
                external_order_id,
                row.shipping_fee_after_discount,
            )
            after_discount = Decimal("0")

        if platform_discount <= 0:
            return after_discount
        if row.original_shipping_fee.strip():
            try:
                original = parse_money(row.original_shipping_fee)
            except ValueError:
                self.logger.warning(
                    "Order %s: unparsable original shipping fee %r",
                    external_order_id,
                    row.original_shipping_fee,
                )
            else:
                return original - parse_money_or(row.shipping_seller_discount)
        return after_discount + platform_discount

    @staticmethod
    def _item_discounts(row: OrderRow, item: LineItem) -> list[LineItem]:
        discounts = []
        for sku, label, raw_value in [
            (SELLER_DISCOUNT_SKU, "Seller Discount", row.seller_discount),
            (PLATFORM_DISCOUNT_SKU, "Platform Discount (TikTok)", row.platform_discount),
        ]:
            amount = parse_money_or(raw_value)
            if amount <= 0:
                continue
            discounts.append(
                LineItem(
                    sku=sku,
                    article_id=None,
                    name=f"{label}: {item.name}",
                    quantity=1,
                    unit_price=-amount,
                    tax_rate=item.tax_rate,
                    tax_id=item.tax_id,
                    is_discount=True,
                )
            )
        return discounts
