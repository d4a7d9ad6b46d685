from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from tiksync.core.dedupe import normalize_header
from tiksync.core.normalize import OrderRow

ORDER_ID_COLUMN = "OrderID"
DELIMITER = ","


class OrderFileError(Exception):
    """The whole file is unusable; nothing from it may be processed."""


@dataclass(slots=True)
class ParsedOrderFile:
    headers: list[str]
    groups: dict[str, list[OrderRow]] = field(default_factory=dict)
    rows_total: int = 0
    rows_skipped: int = 0

    @property
    def rows_accepted(self) -> int:
        return self.rows_total - self.rows_skipped


def parse_order_stream(
    stream: BinaryIO,
    logger: logging.Logger | logging.LoggerAdapter,
    source_name: str = "<stream>",
) -> ParsedOrderFile:
    text = io.TextIOWrapper(stream, encoding="utf-8", newline="")
    try:
        reader = csv.reader(text, delimiter=DELIMITER)
        headers = [normalize_header(cell) for cell in next(reader, [])]
        if not headers or not any(headers):
            raise OrderFileError(f"{source_name}: header row is missing")
        if headers[0] != ORDER_ID_COLUMN:
            raise OrderFileError(
                f"{source_name}: first header is {headers[0]!r}, expected {ORDER_ID_COLUMN!r}"
            )

        parsed = ParsedOrderFile(headers=headers)
        for cells in reader:
            if not cells or not any(cell.strip() for cell in cells):
                continue
            parsed.rows_total += 1
            line_no = reader.line_num

            if len(cells) != len(headers):
                parsed.rows_skipped += 1
                logger.warning(
                    "%s:%s: expected %s columns, got %s; row skipped",
                    source_name,
                    line_no,
                    len(headers),
                    len(cells),
                )
                continue

            row = OrderRow.from_mapping(dict(zip(headers, (cell.strip() for cell in cells))))
            if not row.order_id:
                parsed.rows_skipped += 1
                logger.warning("%s:%s: empty %s; row skipped", source_name, line_no, ORDER_ID_COLUMN)
                continue

            parsed.groups.setdefault(row.order_id, []).append(row)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise OrderFileError(f"{source_name}: unreadable file: {exc}") from exc
    finally:
        text.detach()

    return parsed


def parse_order_file(path: Path, logger: logging.Logger | logging.LoggerAdapter) -> ParsedOrderFile:
    try:
        with path.open("rb") as fh:
            return parse_order_stream(fh, logger, source_name=path.name)
    except OSError as exc:
        raise OrderFileError(f"{path.name}: cannot open file: {exc}") from exc
