from .doctor import run_doctor_checks
from .mapper import MappedOrder, MappingError, OrderMapper, build_order_payload
from .sync import FileState, OrderOutcome, SyncService
from .worker import Worker

__all__ = [
    "FileState",
    "MappedOrder",
    "MappingError",
    "OrderMapper",
    "OrderOutcome",
    "SyncService",
    "Worker",
    "build_order_payload",
    "run_doctor_checks",
]
