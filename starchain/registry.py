# starchain/registry.py
from typing import Any, List, Optional, Union

from starchain.chain.challenge import OwnershipChallenge, SignatureVerifier
from starchain.chain.ledger import Ledger
from starchain.chain.registration import RegistrationFlow
from starchain.core.clock import Clock
from starchain.core.types import Block, RegistrationResult
from starchain.storage import StorageBackend


class StarRegistry:
    """
    The operations a CLI or API layer calls: chain height, challenge issuance,
    claim submission, block lookups, owner queries and chain validation.
    """

    def __init__(
        self,
        storage: Optional[Union[StorageBackend, str]] = None,
        clock: Optional[Clock] = None,
        signature_verifier: Optional[SignatureVerifier] = None,
        reject_replays: bool = False,
    ):
        self.ledger = Ledger(storage=storage, clock=clock)
        self.challenge = OwnershipChallenge(clock=clock, verifier=signature_verifier)
        self.flow = RegistrationFlow(self.ledger, self.challenge, reject_replays=reject_replays)

    def get_chain_height(self) -> int:
        return self.ledger.height

    def request_challenge(self, identity: str) -> str:
        return self.challenge.issue(identity)

    def submit(self, identity: str, token: str, signature: str, item: Any) -> RegistrationResult:
        return self.flow.submit(identity, token, signature, item)

    def get_block_by_hash(self, digest: str) -> Optional[Block]:
        return self.ledger.get_by_digest(digest)

    def get_block_by_height(self, height: int) -> Optional[Block]:
        return self.ledger.get_by_position(height)

    def get_items_by_owner(self, identity: str) -> List[Any]:
        return self.ledger.records_by_owner(identity)

    def validate_chain(self) -> List[Block]:
        return self.ledger.validate()

    def close(self):
        self.ledger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
