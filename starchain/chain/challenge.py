# starchain/chain/challenge.py
import logging
from typing import Callable, Optional

from starchain.core.clock import Clock, epoch_now
from starchain.crypto.keys import verify_signature

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 300
MARKER = "startRegistry"
DELIMITER = ":"

SignatureVerifier = Callable[[str, str, str], bool]


class OwnershipChallenge:
    """
    Stateless challenge protocol. Everything needed at redemption time lives in the
    token text: "<address>:<issued_at>:startRegistry".
    """

    def __init__(self, clock: Optional[Clock] = None, verifier: Optional[SignatureVerifier] = None):
        self._clock = clock or epoch_now
        self._verifier = verifier or verify_signature

    def now(self) -> int:
        return self._clock()

    def issue(self, identity: str) -> str:
        return DELIMITER.join([identity, str(self._clock()), MARKER])

    @staticmethod
    def issued_at(token: str) -> Optional[int]:
        """Embedded issuance time, or None when the token is malformed."""
        # Split from the right so addresses containing ':' still parse
        parts = token.rsplit(DELIMITER, 2)
        if len(parts) != 3:
            return None
        try:
            return int(parts[1])
        except ValueError:
            return None

    def check_window(self, token: str) -> bool:
        issued_at = self.issued_at(token)
        if issued_at is None:
            return False
        # No lower bound: a token stamped slightly in the future is accepted
        return self._clock() - issued_at <= WINDOW_SECONDS

    def check_signature(self, token: str, identity: str, signature: str) -> bool:
        try:
            return bool(self._verifier(token, identity, signature))
        except Exception as e:
            logger.warning("Signature verification failed for %s: %s", identity, e)
            return False
