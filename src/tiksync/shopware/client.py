from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Callable
from urllib.parse import quote, urljoin

import requests

from tiksync.config import ShopwareConfig
from tiksync.core.dedupe import clean_external_id
from tiksync.core.normalize import Address, CustomerInfo

from .errors import RetryExhaustedError, ShopwareApiError, ShopwareError, is_retryable_status
from .models import Article, LookupStatus, OrderLookup, RemoteOrder

ORDER_REFERENCE_PROPERTY = "attribute.attribute1"
GUEST_ACCOUNT_MODE = 1


class ShopwareClient:
    """Shopware 5 REST API access used by the order sync.

    Every request goes through :meth:`_request`, which retries rate limits,
    server errors and transport failures with exponential backoff and gives
    up on anything else at once.
    """

    def __init__(
        self,
        config: ShopwareConfig,
        logger: logging.Logger | logging.LoggerAdapter,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.logger = logger
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.api_key)
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return self.config.retry_base_delay_sec * (2 ** (attempt - 1))

    @staticmethod
    def _decode(response: requests.Response, action: str) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise ShopwareError(f"{action} returned a non-JSON body: {response.text[:200]!r}") from exc
        return payload if isinstance(payload, dict) else {"data": payload}

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        action: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> dict[str, Any] | None:
        url = urljoin(self.config.api_url, endpoint)
        max_attempts = max(1, self.config.retry_attempts)
        last_error = ""

        for attempt in range(1, max_attempts + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    timeout=self.config.timeout_sec,
                )
            except (requests.ConnectionError, requests.Timeout) as exc:
                last_error = f"{exc.__class__.__name__}: {exc}"
            else:
                status = response.status_code
                if status < 400:
                    return self._decode(response, action)
                if status == 404 and allow_not_found:
                    return None
                if not is_retryable_status(status):
                    raise ShopwareApiError(action, status, response.text)
                last_error = f"HTTP {status}"

            if attempt < max_attempts:
                delay = self.backoff_delay(attempt)
                self.logger.warning(
                    "%s failed (attempt %s/%s): %s. Retrying in %.1fs",
                    action,
                    attempt,
                    max_attempts,
                    last_error,
                    delay,
                )
                self._sleep(delay)

        self.logger.error("%s failed after %s attempts: %s", action, max_attempts, last_error)
        raise RetryExhaustedError(action, max_attempts, last_error)

    def check_connection(self) -> str:
        payload = self._request("GET", "version", action="Fetching API version") or {}
        data = payload.get("data") or {}
        return str(data.get("version") or "unknown")

    def find_order_by_external_id(self, external_order_id: str) -> OrderLookup:
        reference = clean_external_id(external_order_id)
        params = {
            "filter[0][property]": ORDER_REFERENCE_PROPERTY,
            "filter[0][value]": reference,
            "limit": 1,
        }
        try:
            payload = self._request("GET", "orders", action=f"Looking up order {reference}", params=params)
            matches = (payload or {}).get("data") or []
            if not matches:
                return OrderLookup(status=LookupStatus.ABSENT)
            remote = self._remote_order(matches[0], reference)
        except ShopwareError as exc:
            self.logger.error("Existence check for order %s failed: %s", reference, exc)
            return OrderLookup(status=LookupStatus.FAILED, error=str(exc))
        return OrderLookup(status=LookupStatus.FOUND, order=remote)

    @staticmethod
    def _remote_order(match: Any, reference: str) -> RemoteOrder:
        try:
            return RemoteOrder(id=int(match["id"]), number=match.get("number"), external_order_id=reference)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ShopwareError(f"Order lookup for {reference} returned a malformed match: {match!r}") from exc

    def find_or_create_guest_customer(self, customer: CustomerInfo, address: Address) -> int:
        group = self.config.guest_group
        params = {"filter[0][property]": "email", "filter[0][value]": customer.email}
        payload = self._request("GET", "customers", action=f"Looking up customer {customer.email}", params=params)

        for candidate in (payload or {}).get("data") or []:
            if candidate.get("groupKey") == group:
                self.logger.info("Reusing guest customer %s for %s", candidate["id"], customer.email)
                return int(candidate["id"])

        body = {
            "email": customer.email,
            "firstname": customer.first_name,
            "lastname": customer.last_name,
            "salutation": "mr",
            "password": secrets.token_urlsafe(24),
            "groupKey": group,
            "accountMode": GUEST_ACCOUNT_MODE,
            "shopId": self.config.shop_id,
            "active": True,
            "billing": {
                "salutation": "mr",
                "firstname": address.first_name,
                "lastname": address.last_name,
                "street": " ".join(part for part in [address.street, address.street_number] if part),
                "zipcode": address.zipcode,
                "city": address.city,
                "country": address.country_id,
                "phone": address.phone or "",
            },
        }
        created = self._request("POST", "customers", action=f"Creating customer {customer.email}", json=body)
        data = (created or {}).get("data") or {}
        if "id" not in data:
            raise ShopwareError(f"Creating customer {customer.email} returned no id")
        customer_id = int(data["id"])
        self.logger.info("Created guest customer %s for %s", customer_id, customer.email)
        return customer_id

    def find_article_by_sku(self, sku: str) -> Article | None:
        payload = self._request(
            "GET",
            f"articles/{quote(sku, safe='')}",
            action=f"Fetching article {sku}",
            params={"useNumberAsId": "true"},
            allow_not_found=True,
        )
        if payload is None:
            return None
        data = payload.get("data")
        if not data:
            return None
        return Article.from_payload(sku, data)

    def create_order(self, order_payload: dict[str, Any]) -> int:
        reference = order_payload.get("transactionId", "?")
        payload = self._request("POST", "orders", action=f"Creating order {reference}", json=order_payload) or {}
        data = payload.get("data") or payload
        if not isinstance(data, dict) or data.get("id") is None:
            raise ShopwareError(f"Order {reference} was created but no id was returned: {payload!r}")
        return int(data["id"])
