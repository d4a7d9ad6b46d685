from __future__ import annotations

import logging
from decimal import Decimal

import pytest
import requests

from tiksync.core.normalize import Address, CustomerInfo
from tiksync.shopware import LookupStatus, RetryExhaustedError, ShopwareApiError, ShopwareClient, ShopwareError


def _client(settings, session, test_logger, sleeps: list[float]) -> ShopwareClient:  # noqa: ANN001
    return ShopwareClient(settings.shopware, logger=test_logger, session=session, sleep=sleeps.append)


def _customer() -> tuple[CustomerInfo, Address]:
    customer = CustomerInfo(email="anna@example.com", first_name="Anna", last_name="Schmidt")
    address = Address(
        first_name="Anna",
        last_name="Schmidt",
        street="Hauptstr.",
        street_number="12",
        zipcode="10115",
        city="Berlin",
        country_id=2,
    )
    return customer, address


def test_server_errors_are_retried_up_to_ceiling(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session(default=reply(503))
    sleeps: list[float] = []
    client = _client(settings, session, test_logger, sleeps)

    with pytest.raises(RetryExhaustedError) as excinfo:
        client.create_order({"transactionId": "A1"})

    assert len(session.calls) == 5
    assert excinfo.value.attempts == 5
    assert sleeps == [1.0, 2.0, 4.0, 8.0]
    assert all(later > earlier for earlier, later in zip(sleeps, sleeps[1:]))


def test_rate_limit_then_success(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session([reply(429), reply(201, {"success": True, "data": {"id": 77}})])
    sleeps: list[float] = []
    client = _client(settings, session, test_logger, sleeps)

    assert client.create_order({"transactionId": "A1"}) == 77
    assert len(session.calls) == 2
    assert sleeps == [1.0]


def test_transport_errors_are_retried(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session(
        [requests.ConnectionError("reset"), requests.Timeout("slow"), reply(200, {"data": {"id": 5}})]
    )
    sleeps: list[float] = []
    client = _client(settings, session, test_logger, sleeps)

    assert client.create_order({"transactionId": "A1"}) == 5
    assert sleeps == [1.0, 2.0]


def test_article_not_found_is_attempted_once(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session([reply(404, {"success": False, "message": "not found"})])
    sleeps: list[float] = []
    client = _client(settings, session, test_logger, sleeps)

    assert client.find_article_by_sku("SKU/1") is None
    assert len(session.calls) == 1
    assert sleeps == []
    assert session.calls[0]["url"] == "https://shop.example/api/articles/SKU%2F1"
    assert session.calls[0]["params"] == {"useNumberAsId": "true"}


def test_validation_error_is_not_retried(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session([reply(400, {"success": False, "message": "invalid"})])
    client = _client(settings, session, test_logger, [])

    with pytest.raises(ShopwareApiError) as excinfo:
        client.create_order({"transactionId": "A1"})

    assert excinfo.value.status_code == 400
    assert len(session.calls) == 1


def test_article_payload_is_parsed(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    data = {
        "id": 12,
        "name": "Phone Case",
        "taxId": 1,
        "tax": {"id": 1, "tax": "19.00", "name": "19%"},
        "mainDetail": {"number": "SKU-A"},
    }
    client = _client(settings, make_session([reply(200, {"data": data})]), test_logger, [])

    article = client.find_article_by_sku("SKU-A")

    assert article.id == 12
    assert article.tax_id == 1
    assert article.tax_rate == Decimal("19.00")


def test_find_order_found_and_absent(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session(
        [
            reply(200, {"data": [{"id": 900, "number": "20001"}], "total": 1}),
            reply(200, {"data": [], "total": 0}),
        ]
    )
    client = _client(settings, session, test_logger, [])

    found = client.find_order_by_external_id("ABC123\x00")
    absent = client.find_order_by_external_id("XYZ")

    assert found.status is LookupStatus.FOUND
    assert found.order.id == 900
    assert found.order.external_order_id == "ABC123"
    assert session.calls[0]["params"]["filter[0][value]"] == "ABC123"
    assert session.calls[0]["params"]["filter[0][property]"] == "attribute.attribute1"
    assert absent.status is LookupStatus.ABSENT
    assert not absent.exists


def test_find_order_failure_is_reported_distinctly(settings, test_logger, make_session, reply, caplog) -> None:  # noqa: ANN001
    client = _client(settings, make_session([reply(401, {"message": "auth"})]), test_logger, [])

    with caplog.at_level(logging.ERROR):
        lookup = client.find_order_by_external_id("ABC123")

    assert lookup.status is LookupStatus.FAILED
    assert not lookup.exists
    assert "HTTP 401" in lookup.error
    assert "Existence check for order ABC123 failed" in caplog.text


def test_existing_guest_customer_is_reused(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session(
        [
            reply(
                200,
                {
                    "data": [
                        {"id": 3, "email": "anna@example.com", "groupKey": "H"},
                        {"id": 4, "email": "anna@example.com", "groupKey": "EK"},
                    ]
                },
            )
        ]
    )
    client = _client(settings, session, test_logger, [])

    assert client.find_or_create_guest_customer(*_customer()) == 4
    assert len(session.calls) == 1


def test_guest_customer_is_created_with_random_password(
    settings, test_logger, make_session, reply, caplog  # noqa: ANN001
) -> None:
    session = make_session(
        [
            reply(200, {"data": [{"id": 3, "email": "anna@example.com", "groupKey": "H"}]}),
            reply(201, {"success": True, "data": {"id": 42}}),
            reply(200, {"data": []}),
            reply(201, {"success": True, "data": {"id": 43}}),
        ]
    )
    client = _client(settings, session, test_logger, [])

    with caplog.at_level(logging.DEBUG):
        first = client.find_or_create_guest_customer(*_customer())
        second = client.find_or_create_guest_customer(*_customer())

    assert (first, second) == (42, 43)
    body = session.calls[1]["json"]
    assert body["groupKey"] == "EK"
    assert body["accountMode"] == 1
    assert body["billing"]["street"] == "Hauptstr. 12"
    password = body["password"]
    assert len(password) >= 24
    assert password != session.calls[3]["json"]["password"]
    assert password not in caplog.text


def test_customer_creation_without_id_is_an_error(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    session = make_session([reply(200, {"data": []}), reply(201, {"success": True, "data": {}})])
    client = _client(settings, session, test_logger, [])

    with pytest.raises(ShopwareError, match="returned no id"):
        client.find_or_create_guest_customer(*_customer())


def test_non_json_lookup_reply_is_a_failed_lookup(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    html = "<html><body>Maintenance</body></html>"
    client = _client(settings, make_session([reply(200, body=html)]), test_logger, [])

    lookup = client.find_order_by_external_id("ABC123")

    assert lookup.status is LookupStatus.FAILED
    assert "non-JSON body" in lookup.error


def test_lookup_match_without_id_is_a_failed_lookup(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    client = _client(settings, make_session([reply(200, {"data": [{"number": "20001"}]})]), test_logger, [])

    lookup = client.find_order_by_external_id("ABC123")

    assert lookup.status is LookupStatus.FAILED
    assert "malformed match" in lookup.error


def test_created_order_without_id_is_an_error(settings, test_logger, make_session, reply) -> None:  # noqa: ANN001
    client = _client(settings, make_session([reply(201, {"success": True, "data": {}})]), test_logger, [])

    with pytest.raises(ShopwareError, match="created but no id was returned"):
        client.create_order({"transactionId": "A1"})
