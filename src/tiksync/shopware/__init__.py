from .client import ShopwareClient
from .errors import RetryExhaustedError, ShopwareApiError, ShopwareError, is_retryable_status
from .models import Article, LookupStatus, OrderLookup, RemoteOrder

__all__ = [
    "Article",
    "LookupStatus",
    "OrderLookup",
    "RemoteOrder",
    "RetryExhaustedError",
    "ShopwareApiError",
    "ShopwareClient",
    "ShopwareError",
    "is_retryable_status",
]
