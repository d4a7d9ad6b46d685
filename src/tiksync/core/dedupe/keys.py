from __future__ import annotations

import re
import unicodedata
from typing import Any

BOM = "\ufeff"
_WHITESPACE = re.compile(r"\s+")


def strip_control_chars(value: str) -> str:
    # Cc/Cf also covers zero-width characters and a stray BOM
    return "".join(ch for ch in value if unicodedata.category(ch) not in {"Cc", "Cf"})


def clean_external_id(value: Any) -> str:
    """Order id as used for grouping and for remote idempotency lookups."""
    if value is None:
        return ""
    return strip_control_chars(str(value)).strip()


def normalize_header(value: str) -> str:
    cleaned = strip_control_chars(value.replace(BOM, ""))
    return _WHITESPACE.sub("", cleaned)


def internal_comment(external_order_id: str) -> str:
    return f"TikTok Order ID: {clean_external_id(external_order_id)}"
