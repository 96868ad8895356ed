# starchain/crypto/hashing.py
import hashlib
from typing import TYPE_CHECKING, Any, Dict

from starchain.core.canon import canonical_json

if TYPE_CHECKING:
    from starchain.core.types import Block


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def payload_hash(payload: Dict[str, Any]) -> str:
    """SHA-256 hex digest of the canonical JSON form of a payload."""
    return sha256_hex(canonical_json(payload))


def block_hash(block: "Block") -> str:
    """Digest over content, position, timestamp and previous digest of a block."""
    return payload_hash(block.hash_payload())
