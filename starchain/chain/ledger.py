# starchain/chain/ledger.py
import logging
import threading
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from starchain.core.clock import Clock, epoch_now
from starchain.core.types import Block, genesis_content
from starchain.storage import SQLiteStorage, StorageBackend, create_storage
from starchain.verify.verifier import ChainVerifier, VerificationResult

logger = logging.getLogger(__name__)


class Ledger:
    """
    Append-only chain of hash-linked blocks.

    The genesis block exists from construction, so the ledger is never empty.
    `append` is the only mutation; it and every read run under one lock, so a
    reader sees the chain either before or after a given append.
    Optionally writes through to a storage backend and reloads from it.
    """

    def __init__(
        self,
        storage: Optional[Union[StorageBackend, str]] = None,
        clock: Optional[Clock] = None,
    ):
        self._blocks: List[Block] = []
        self._lock = threading.Lock()
        self._clock = clock or epoch_now
        self._verifier = ChainVerifier()

        if isinstance(storage, str):
            stripped = storage.strip()
            if "://" in stripped:
                storage = create_storage(stripped)
            elif stripped:
                # Plain file path → SQLite
                storage = SQLiteStorage(Path(stripped))
            else:
                storage = None
        self.storage: Optional[StorageBackend] = storage
        # Blocks below this position are known to be in storage
        self._persisted = 0

        if self.storage:
            self._blocks = self.storage.load_blocks()
            self._persisted = len(self._blocks)
            if self._blocks:
                logger.info("Loaded %d blocks from storage", len(self._blocks))

        if not self._blocks:
            genesis = self.append(Block.create(genesis_content()))
            logger.info("Created genesis block %s", genesis.digest)

    @property
    def height(self) -> int:
        return len(self._blocks) - 1

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks())

    def blocks(self) -> List[Block]:
        """Copy of the chain in order (oldest first)."""
        with self._lock:
            return self._blocks.copy()

    @property
    def tail(self) -> Block:
        with self._lock:
            return self._blocks[-1]

    def append(self, block: Block) -> Block:
        """
        Link `block` to the current tail and store it: position = height + 1,
        created_at = now, previous_digest = tail digest (None for the first block),
        then the digest is computed. Returns the finalized block.
        """
        with self._lock:
            position = len(self._blocks)
            previous_digest = self._blocks[-1].digest if self._blocks else None
            block.finalize(position, self._clock(), previous_digest)
            self._blocks.append(block)
            self._flush()

        logger.debug("Appended block %d %s", block.sequence_position, block.digest)
        return block

    @property
    def unpersisted_count(self) -> int:
        """Blocks accepted in memory but not yet written to storage."""
        with self._lock:
            return len(self._blocks) - self._persisted if self.storage else 0

    def _flush(self) -> None:
        """Write every block not yet in storage, oldest first. Caller holds the lock."""
        if not self.storage:
            return
        while self._persisted < len(self._blocks):
            pending = self._blocks[self._persisted]
            try:
                self.storage.append(pending)
            except Exception as e:
                logger.warning(
                    "Failed to persist block %d (%d blocks pending): %s",
                    pending.sequence_position, len(self._blocks) - self._persisted, e,
                )
                return
            self._persisted += 1

    def get_by_digest(self, digest: str) -> Optional[Block]:
        with self._lock:
            for block in self._blocks:
                if block.digest == digest:
                    return block
        return None

    def get_by_position(self, position: int) -> Optional[Block]:
        with self._lock:
            if 0 <= position < len(self._blocks):
                return self._blocks[position]
        return None

    def records_by_owner(self, identity: str) -> List[Any]:
        """Items claimed by `identity`, oldest first. Recomputed on every call."""
        items = []
        for block in self.blocks():
            record = block.decoded_content()
            if record is not None and record.owner == identity:
                items.append(record.item)
        return items

    def verify(self) -> VerificationResult:
        """Detailed integrity report for the whole chain."""
        return self._verifier.verify(self.blocks())

    def validate(self) -> List[Block]:
        """Every block that fails its digest, position or linkage check, in chain order."""
        chain = self.blocks()
        result = self._verifier.verify(chain)
        if not result.is_valid:
            logger.warning("Chain validation found %d issues", len(result.failures))
        return [chain[i] for i in result.failed_indexes]

    def close(self) -> None:
        if self.storage:
            try:
                self.storage.close()
                logger.info("Storage closed")
            except Exception as e:
                logger.warning("Error closing storage: %s", e)
            self.storage = None
