# starchain/crypto/keys.py
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from starchain.core.encoding import b64url_encode, b64url_decode


@dataclass
class WalletKeyPair:
    """
    Ed25519 wallet key. The wallet address is the base64url encoded raw public key,
    so anyone holding an address can verify signatures made by its owner.
    """
    public_key: ed25519.Ed25519PublicKey
    private_key: Optional[ed25519.Ed25519PrivateKey] = None

    @classmethod
    def generate(cls) -> "WalletKeyPair":
        private_key = ed25519.Ed25519PrivateKey.generate()
        return cls(public_key=private_key.public_key(), private_key=private_key)

    @classmethod
    def from_private_b64url(cls, private_b64: str) -> "WalletKeyPair":
        private_key = ed25519.Ed25519PrivateKey.from_private_bytes(b64url_decode(private_b64))
        return cls(public_key=private_key.public_key(), private_key=private_key)

    @classmethod
    def from_public_b64url(cls, public_b64: str) -> "WalletKeyPair":
        """Verify-only key pair built from a wallet address."""
        return cls(public_key=ed25519.Ed25519PublicKey.from_public_bytes(b64url_decode(public_b64)))

    @property
    def address(self) -> str:
        return self.public_key_b64url()

    def public_key_b64url(self) -> str:
        raw = self.public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        return b64url_encode(raw)

    def private_key_b64url(self) -> str:
        if self.private_key is None:
            raise ValueError("Key pair has no private key")
        raw = self.private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return b64url_encode(raw)

    def sign_bytes(self, data: bytes) -> bytes:
        if self.private_key is None:
            raise ValueError("Cannot sign with a verify-only key pair")
        return self.private_key.sign(data)

    def sign_text(self, message: str) -> str:
        """Sign a UTF-8 message (e.g. a challenge token); returns the base64url signature."""
        return b64url_encode(self.sign_bytes(message.encode("utf-8")))

    def verify_bytes(self, signature: bytes, data: bytes) -> bool:
        try:
            self.public_key.verify(signature, data)
            return True
        except InvalidSignature:
            return False


def verify_signature(message: str, address: str, signature: str) -> bool:
    """
    Default signature primitive: checks that `signature` (base64url) over `message`
    was produced by the wallet whose address is `address`.
    Malformed addresses or signatures raise; callers treat that as a failed check.
    """
    verifier = WalletKeyPair.from_public_b64url(address)
    return verifier.verify_bytes(b64url_decode(signature), message.encode("utf-8"))
