from .keys import (
    clean_external_id,
    internal_comment,
    normalize_header,
    strip_control_chars,
)

__all__ = [
    "strip_control_chars",
    "clean_external_id",
    "normalize_header",
    "internal_comment",
]
