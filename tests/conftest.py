from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from tiksync.config import Settings
from tiksync.shopware import Article, LookupStatus, OrderLookup, RemoteOrder, ShopwareApiError


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, body: str | None = None):
        self.status_code = status_code
        if body is None:
            body = "" if payload is None else json.dumps(payload)
        self.text = body
        self.content = body.encode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Stands in for ``requests.Session``; replies are consumed in order."""

    def __init__(self, replies: list[Any] | None = None, default: Any = None):
        self.replies = list(replies or [])
        self.default = default
        self.calls: list[dict[str, Any]] = []
        self.headers: dict[str, str] = {}
        self.auth = None

    def request(self, method, url, params=None, json=None, timeout=None):  # noqa: ANN001
        self.calls.append({"method": method, "url": url, "params": params, "json": json})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise AssertionError(f"unexpected request {method} {url}")
        return reply


class FakeGateway:
    def __init__(self, articles: dict[str, Article] | None = None):
        self.articles = dict(articles or {})
        self.existing: dict[str, int] = {}
        self.customers: dict[str, int] = {}
        self.created: list[dict[str, Any]] = []
        self.article_lookups: list[str] = []
        self.customer_error: Exception | None = None
        self.create_error_for: set[str] = set()

    def find_order_by_external_id(self, external_order_id: str) -> OrderLookup:
        if external_order_id in self.existing:
            remote = RemoteOrder(id=self.existing[external_order_id], number=None, external_order_id=external_order_id)
            return OrderLookup(status=LookupStatus.FOUND, order=remote)
        return OrderLookup(status=LookupStatus.ABSENT)

    def find_or_create_guest_customer(self, customer, address) -> int:  # noqa: ANN001
        if self.customer_error is not None:
            raise self.customer_error
        return self.customers.setdefault(customer.email, 100 + len(self.customers))

    def find_article_by_sku(self, sku: str) -> Article | None:
        self.article_lookups.append(sku)
        return self.articles.get(sku)

    def create_order(self, payload: dict[str, Any]) -> int:
        reference = payload["attribute"]["attribute1"]
        if reference in self.create_error_for:
            raise ShopwareApiError(f"Creating order {reference}", 400, "validation failed")
        self.created.append(payload)
        remote_id = 5000 + len(self.created)
        self.existing[reference] = remote_id
        return remote_id


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch) -> Settings:  # noqa: ANN001
    monkeypatch.delenv("TIKSYNC_HOME", raising=False)
    monkeypatch.setenv("SHOPWARE_API_URL", "https://shop.example/api")
    monkeypatch.setenv("SHOPWARE_API_USERNAME", "sync")
    monkeypatch.setenv("SHOPWARE_API_KEY", "secret")
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("tiksync-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway(
        articles={
            "SKU-A": Article(id=1, number="SKU-A", name="Phone Case", tax_id=1, tax_rate=Decimal("19")),
            "SKU-B": Article(id=2, number="SKU-B", name="Cookbook", tax_id=4, tax_rate=Decimal("7")),
        }
    )


@pytest.fixture()
def write_csv(tmp_path: Path):
    def _write(name: str, lines: list[str], bom: bool = False) -> Path:
        path = tmp_path / name
        text = "\n".join(lines) + "\n"
        path.write_bytes((b"\xef\xbb\xbf" if bom else b"") + text.encode("utf-8"))
        return path

    return _write


@pytest.fixture()
def reply():
    return FakeResponse


@pytest.fixture()
def make_session():
    return FakeSession
