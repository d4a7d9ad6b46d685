from __future__ import annotations

import shutil
import uuid
from pathlib import Path


class QueueDirectory:
    """Directory of uploaded export files waiting to be synced."""

    def __init__(self, path: Path, pattern: str = "*.csv"):
        self.path = path
        self.pattern = pattern

    def ensure(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def pending(self) -> list[Path]:
        if not self.path.exists():
            return []
        return sorted(p for p in self.path.glob(self.pattern) if p.is_file())

    @staticmethod
    def new_name() -> str:
        return f"csv_{uuid.uuid4().hex}.csv"

    def enqueue(self, source: Path) -> Path:
        if not source.is_file():
            raise FileNotFoundError(f"Not a file: {source}")
        self.ensure()
        # workers only glob the final name, never the .part file
        target = self.path / self.new_name()
        partial = target.with_suffix(".part")
        shutil.copyfile(source, partial)
        partial.replace(target)
        return target
