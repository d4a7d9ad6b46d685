from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Any

from tiksync.config import Settings
from tiksync.core.normalize import OrderRow
from tiksync.parsers import OrderFileError, parse_order_file
from tiksync.shopware import LookupStatus, ShopwareClient, ShopwareError

from .mapper import MappingError, OrderMapper


class FileState(enum.Enum):
    PENDING = "pending"
    PARSING = "parsing"
    ABORTED = "aborted"
    GROUPS_READY = "groups_ready"
    PROCESSING = "processing"
    DONE = "done"


class OrderOutcome(enum.Enum):
    CREATED = "created"
    EXISTS = "exists"


class SyncService:
    def __init__(
        self,
        settings: Settings,
        client: ShopwareClient,
        logger: logging.Logger | logging.LoggerAdapter,
        mapper: OrderMapper | None = None,
    ):
        self.settings = settings
        self.client = client
        self.logger = logger
        self.mapper = mapper or OrderMapper(settings.shopware, client, logger, dayfirst=settings.date_dayfirst)

    def _transition(self, path: Path, stats: dict[str, Any], state: FileState) -> None:
        stats["status"] = state.value
        self.logger.debug("%s -> %s", path.name, state.value)

    def sync_order(self, external_order_id: str, rows: list[OrderRow]) -> OrderOutcome:
        lookup = self.client.find_order_by_external_id(external_order_id)
        if lookup.exists:
            self.logger.info(
                "Order %s already exists as Shopware order %s, skipped",
                external_order_id,
                lookup.order.id if lookup.order else "?",
            )
            return OrderOutcome.EXISTS
        if lookup.status is LookupStatus.FAILED:
            self.logger.warning("Order %s: existence unknown, attempting create", external_order_id)

        mapped = self.mapper.map_order(external_order_id, rows)
        remote_id = self.client.create_order(mapped.payload)
        self.logger.info(
            "Order %s created: Shopware order %s (%s line items)",
            external_order_id,
            remote_id,
            len(mapped.order.items),
        )
        return OrderOutcome.CREATED

    def process_file(self, path: Path) -> dict[str, Any]:
        stats: dict[str, Any] = {
            "file": path.name,
            "status": FileState.PENDING.value,
            "rows_total": 0,
            "rows_skipped": 0,
            "orders_total": 0,
            "orders_created": 0,
            "orders_skipped_existing": 0,
            "orders_failed": 0,
        }
        self.logger.info("Processing file: %s", path)

        self._transition(path, stats, FileState.PARSING)
        try:
            parsed = parse_order_file(path, self.logger)
        except OrderFileError as exc:
            self._transition(path, stats, FileState.ABORTED)
            self.logger.error("File %s rejected, left in place: %s", path.name, exc)
            return stats

        self._transition(path, stats, FileState.GROUPS_READY)
        stats["rows_total"] = parsed.rows_total
        stats["rows_skipped"] = parsed.rows_skipped
        stats["orders_total"] = len(parsed.groups)

        self._transition(path, stats, FileState.PROCESSING)
        for external_order_id, rows in parsed.groups.items():
            try:
                outcome = self.sync_order(external_order_id, rows)
            except (MappingError, ShopwareError) as exc:
                stats["orders_failed"] += 1
                self.logger.error("Failed to sync order %s: %s", external_order_id, exc)
                continue
            except Exception as exc:  # noqa: BLE001
                stats["orders_failed"] += 1
                self.logger.error("Unexpected error for order %s: %s", external_order_id, exc, exc_info=True)
                continue

            if outcome is OrderOutcome.CREATED:
                stats["orders_created"] += 1
            else:
                stats["orders_skipped_existing"] += 1

        path.unlink(missing_ok=True)
        self._transition(path, stats, FileState.DONE)
        self.logger.info(
            "Finished processing file: %s (created=%s, existing=%s, failed=%s)",
            path.name,
            stats["orders_created"],
            stats["orders_skipped_existing"],
            stats["orders_failed"],
        )
        return stats
