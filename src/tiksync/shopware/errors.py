from __future__ import annotations


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class ShopwareError(Exception):
    """Base class for failed Shopware API operations."""


class ShopwareApiError(ShopwareError):
    """Non-retryable HTTP failure (validation, auth, unexpected 404 and so on)."""

    def __init__(self, action: str, status_code: int, body: str = ""):
        self.action = action
        self.status_code = status_code
        self.body = body[:500]
        super().__init__(f"{action} failed with HTTP {status_code}: {self.body}")


class RetryExhaustedError(ShopwareError):
    def __init__(self, action: str, attempts: int, last_error: str):
        self.action = action
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Max retry attempts ({attempts}) reached for {action}: {last_error}")
