import json
from typing import Protocol

from nacl.signing import SigningKey
from solders.pubkey import Pubkey


class Signer(Protocol):
    """Anything that can sign a transaction message for the payer."""

    def public_key(self) -> bytes:
        ...

    def sign(self, message: bytes) -> bytes:
        ...


class NaclSigner:
    """Signer backed by a PyNaCl ed25519 SigningKey."""

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key

    @classmethod
    def generate(cls) -> "NaclSigner":
        return cls(SigningKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "NaclSigner":
        return cls(SigningKey(bytes(seed)))

    @classmethod
    def from_keypair_bytes(cls, keypair: bytes) -> "NaclSigner":
        """
        Load a 64-byte Solana keypair (secret seed followed by public key).
        Raises ValueError if the two halves do not belong together.
        """
        keypair = bytes(keypair)
        if len(keypair) != 64:
            raise ValueError(f"Keypair must be 64 bytes, got {len(keypair)}")
        signer = cls.from_seed(keypair[:32])
        if signer.public_key() != keypair[32:]:
            raise ValueError("Keypair public key does not match its secret")
        return signer

    @classmethod
    def from_keypair_file(cls, path: str) -> "NaclSigner":
        """Load a keypair file as written by `solana-keygen` (JSON int array)."""
        with open(path, "r") as f:
            return cls.from_keypair_bytes(bytes(json.load(f)))

    def public_key(self) -> bytes:
        return self._signing_key.verify_key.encode()

    def pubkey(self) -> Pubkey:
        return Pubkey(self.public_key())

    def sign(self, message: bytes) -> bytes:
        return self._signing_key.sign(bytes(message)).signature

    def __repr__(self):
        return f"NaclSigner({self.pubkey()})"
