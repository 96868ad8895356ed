# starchain/__init__.py
"""
Starchain — a tamper-evident, append-only star registry.
Every block is hash-linked to its predecessor; ownership of a registered item is
proven by signing a short-lived challenge with the owner's wallet key.
"""

__version__ = "0.1.0.dev0"

from starchain.core.types import Block, ClaimRecord, RegistrationError, RegistrationResult
from starchain.chain.ledger import Ledger
from starchain.chain.challenge import OwnershipChallenge
from starchain.chain.registration import RegistrationFlow
from starchain.crypto.keys import WalletKeyPair, verify_signature
from starchain.registry import StarRegistry

__all__ = [
    "Block",
    "ClaimRecord",
    "RegistrationError",
    "RegistrationResult",
    "Ledger",
    "OwnershipChallenge",
    "RegistrationFlow",
    "WalletKeyPair",
    "verify_signature",
    "StarRegistry",
]
