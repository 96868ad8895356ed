# starchain/core/types.py
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from starchain.core.canon import canonical_json_str, parse_json
from starchain.core.encoding import encode_text, decode_text
from starchain.crypto.hashing import payload_hash

logger = logging.getLogger(__name__)

GENESIS_DATA = "Genesis Block"


@dataclass(frozen=True)
class ClaimRecord:
    """Owner claim carried in the content of every non-genesis block."""
    owner: str                      # wallet address
    item: Any                       # any JSON value, e.g. {"name": "Polaris", "ra": "02h 31m"}

    def encode(self) -> str:
        try:
            text = canonical_json_str({"owner": self.owner, "item": self.item})
        except (TypeError, ValueError) as e:
            raise ValueError(f"Claim item is not JSON-serializable: {e}") from e
        return encode_text(text)

    @classmethod
    def decode(cls, content: str) -> "ClaimRecord":
        body = parse_json(decode_text(content))
        if not isinstance(body, dict) or "owner" not in body or "item" not in body:
            raise ValueError("Content is not a claim record")
        return cls(owner=body["owner"], item=body["item"])


def genesis_content() -> str:
    return encode_text(canonical_json_str({"data": GENESIS_DATA}))


@dataclass
class Block:
    """
    One entry of the ledger.
    Only `content` is chosen by the caller; the linkage fields and the digest are
    filled exactly once by `finalize`, which only the Ledger calls.
    """
    content: str
    sequence_position: Optional[int] = None
    created_at: Optional[int] = None        # epoch seconds
    previous_digest: Optional[str] = None   # None only for the genesis block
    digest: Optional[str] = None

    @classmethod
    def create(cls, content: str) -> "Block":
        return cls(content=content)

    @property
    def is_finalized(self) -> bool:
        return self.digest is not None

    def hash_payload(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "sequence_position": self.sequence_position,
            "created_at": self.created_at,
            "previous_digest": self.previous_digest,
        }

    def finalize(self, sequence_position: int, created_at: int, previous_digest: Optional[str]) -> "Block":
        if self.is_finalized:
            raise ValueError(f"Block already finalized at position {self.sequence_position}")
        self.sequence_position = sequence_position
        self.created_at = created_at
        self.previous_digest = previous_digest
        self.digest = payload_hash(self.hash_payload())
        return self

    def validate_self(self) -> bool:
        """Recompute the digest from the current field values and compare. Linkage is not checked here."""
        if not self.is_finalized:
            return False
        return payload_hash(self.hash_payload()) == self.digest

    def decoded_content(self) -> Optional[ClaimRecord]:
        """Owner claim stored in this block, or None for the genesis block and non-claim payloads."""
        if self.sequence_position == 0:
            return None
        try:
            return ClaimRecord.decode(self.content)
        except ValueError as e:
            logger.warning("Block %s does not carry a claim record: %s", self.sequence_position, e)
            return None

    def to_dict(self) -> dict:
        return asdict(self)


class RegistrationError(str, Enum):
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    REPLAYED = "replayed"
    INVALID_ITEM = "invalid_item"

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    RegistrationError.EXPIRED: "Time has expired!",
    RegistrationError.INVALID_SIGNATURE: "Invalid signature!",
    RegistrationError.REPLAYED: "Challenge already used!",
    RegistrationError.INVALID_ITEM: "Item is not JSON-serializable!",
}


@dataclass
class RegistrationResult:
    block: Optional[Block] = None
    error: Optional[RegistrationError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None and self.block is not None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return f"Block {self.block.sequence_position} added"

    def __bool__(self):
        return self.is_valid

    @classmethod
    def ok(cls, block: Block) -> "RegistrationResult":
        return cls(block=block)

    @classmethod
    def rejected(cls, error: RegistrationError) -> "RegistrationResult":
        return cls(error=error)
