# starchain/storage/__init__.py
"""
Storage backends that give the in-memory ledger durability.
"""

from abc import ABC, abstractmethod
from typing import List
from pathlib import Path
from starchain.core.types import Block


class StorageBackend(ABC):
    """Abstract base for all persistent storage implementations."""

    @abstractmethod
    def append(self, block: Block) -> None:
        pass

    @abstractmethod
    def load_blocks(self) -> List[Block]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


def create_storage(uri: str) -> StorageBackend:
    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteStorage
        # sqlite:///abs/path.db is absolute, sqlite://rel.db is relative to the working directory
        raw_path = uri[len("sqlite://"):]
        if not raw_path:
            raise ValueError(f"Missing database path in storage URI: {uri}")
        return SQLiteStorage(Path(raw_path).resolve())
    else:
        raise ValueError(f"Unsupported storage URI: {uri}")


from .sqlite import SQLiteStorage

__all__ = ["StorageBackend", "create_storage", "SQLiteStorage"]
