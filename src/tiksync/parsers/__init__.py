from .csv_parser import (
    ORDER_ID_COLUMN,
    OrderFileError,
    ParsedOrderFile,
    parse_order_file,
    parse_order_stream,
)

__all__ = [
    "ORDER_ID_COLUMN",
    "OrderFileError",
    "ParsedOrderFile",
    "parse_order_file",
    "parse_order_stream",
]
