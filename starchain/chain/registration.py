# starchain/chain/registration.py
import logging
import threading
from typing import Any, Set, Tuple

from starchain.chain.challenge import OwnershipChallenge, WINDOW_SECONDS
from starchain.chain.ledger import Ledger
from starchain.core.types import Block, ClaimRecord, RegistrationError, RegistrationResult

logger = logging.getLogger(__name__)


class RegistrationFlow:
    """
    Turns a signed challenge into a new block.
    The time window is checked before the signature so expired tokens never cost a
    signature verification.
    """

    def __init__(self, ledger: Ledger, challenge: OwnershipChallenge, reject_replays: bool = False):
        self.ledger = ledger
        self.challenge = challenge
        self.reject_replays = reject_replays
        self._consumed: Set[Tuple[str, int]] = set()
        self._consumed_lock = threading.Lock()

    def submit(self, identity: str, token: str, signature: str, item: Any) -> RegistrationResult:
        if not self.challenge.check_window(token):
            logger.info("Rejected claim from %s: challenge expired", identity)
            return RegistrationResult.rejected(RegistrationError.EXPIRED)

        if not self.challenge.check_signature(token, identity, signature):
            logger.info("Rejected claim from %s: invalid signature", identity)
            return RegistrationResult.rejected(RegistrationError.INVALID_SIGNATURE)

        # Encode before consuming the token so a bad item leaves it reusable
        try:
            content = ClaimRecord(owner=identity, item=item).encode()
        except ValueError as e:
            logger.info("Rejected claim from %s: %s", identity, e)
            return RegistrationResult.rejected(RegistrationError.INVALID_ITEM)

        if self.reject_replays and not self._consume(identity, token):
            logger.info("Rejected claim from %s: challenge already used", identity)
            return RegistrationResult.rejected(RegistrationError.REPLAYED)

        block = self.ledger.append(Block.create(content))
        logger.info("Registered item for %s at height %d", identity, block.sequence_position)
        return RegistrationResult.ok(block)

    def _consume(self, identity: str, token: str) -> bool:
        key = (identity, self.challenge.issued_at(token))
        with self._consumed_lock:
            # Tokens older than the window are rejected as expired before reaching here
            cutoff = self.challenge.now() - WINDOW_SECONDS
            self._consumed = {k for k in self._consumed if k[1] >= cutoff}
            if key in self._consumed:
                return False
            self._consumed.add(key)
            return True

    def consumed_count(self) -> int:
        with self._consumed_lock:
            return len(self._consumed)
