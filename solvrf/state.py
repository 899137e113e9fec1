"""
Account layouts owned by the VRF program.

Both accounts are Anchor accounts: an 8-byte discriminator
(sha256("account:<Name>")[:8]) followed by the borsh-encoded body.

    Randomness     seed [u8;32] | randomness Option<[u8;64]> | status u8
    NetworkState   authority [u8;32] | treasury [u8;32] | request_fee u64
                   | fulfillment_authorities Vec<[u8;32]>

Account bytes come from a remote node, so every decoder raises
DecodeError on malformed input and nothing else.
"""

from enum import IntEnum
from typing import List, Optional

from borsh_construct import CStruct, Option, U8, U64, Vec
from construct import ConstructError
from nacl.encoding import RawEncoder
from nacl.hash import sha256
from solders.pubkey import Pubkey

from solvrf.errors import DecodeError


def account_discriminator(name: str) -> bytes:
    return sha256(f"account:{name}".encode(), encoder=RawEncoder)[:8]


RANDOMNESS_DISCRIMINATOR = account_discriminator("Randomness")
NETWORK_STATE_DISCRIMINATOR = account_discriminator("NetworkState")

DISCRIMINATOR_LEN = 8
SIGNATURE_LEN = 64

RANDOMNESS_LAYOUT = CStruct(
    "seed" / U8[32],
    "randomness" / Option(U8[SIGNATURE_LEN]),
    "status" / U8,
)

CONFIG_HEADER_LAYOUT = CStruct(
    "authority" / U8[32],
    "treasury" / U8[32],
)

NETWORK_CONFIG_LAYOUT = CStruct(
    "authority" / U8[32],
    "treasury" / U8[32],
    "request_fee" / U64,
    "fulfillment_authorities" / Vec(U8[32]),
)

# discriminator + seed + option tag + status
RANDOMNESS_MIN_LEN = DISCRIMINATOR_LEN + 32 + 1 + 1
RANDOMNESS_OPTION_OFFSET = DISCRIMINATOR_LEN + 32
CONFIG_MIN_LEN = DISCRIMINATOR_LEN + 32 + 32
TREASURY_OFFSET = DISCRIMINATOR_LEN + 32


class RandomnessStatus(IntEnum):
    PENDING = 0
    FULFILLED = 1


def _check_discriminator(data: bytes, expected: bytes, name: str):
    if data[:DISCRIMINATOR_LEN] != expected:
        raise DecodeError(
            f"{name}: discriminator mismatch {data[:DISCRIMINATOR_LEN].hex()} != {expected.hex()}"
        )


def _parse(layout, body: bytes, name: str):
    try:
        return layout.parse(body)
    except ConstructError as e:
        raise DecodeError(f"{name}: {e}") from e


class Randomness:
    """Decoded randomness account. `randomness` is None while pending."""

    def __init__(
        self,
        seed: bytes,
        randomness: Optional[bytes] = None,
        status: RandomnessStatus = RandomnessStatus.PENDING,
    ):
        self.seed = seed
        self.randomness = randomness
        self.status = status

    @classmethod
    def decode(cls, data: bytes) -> "Randomness":
        data = bytes(data)
        if len(data) < RANDOMNESS_MIN_LEN:
            raise DecodeError(
                f"Randomness: account too short ({len(data)} < {RANDOMNESS_MIN_LEN} bytes)"
            )
        _check_discriminator(data, RANDOMNESS_DISCRIMINATOR, "Randomness")

        tag = data[RANDOMNESS_OPTION_OFFSET]
        if tag not in (0, 1):
            raise DecodeError(f"Randomness: invalid option tag {tag}")
        if tag == 1 and len(data) < RANDOMNESS_MIN_LEN + SIGNATURE_LEN:
            raise DecodeError("Randomness: truncated signature")

        parsed = _parse(RANDOMNESS_LAYOUT, data[DISCRIMINATOR_LEN:], "Randomness")
        try:
            status = RandomnessStatus(parsed.status)
        except ValueError:
            raise DecodeError(f"Randomness: unknown status {parsed.status}")

        signature = bytes(parsed.randomness) if parsed.randomness is not None else None
        return cls(seed=bytes(parsed.seed), randomness=signature, status=status)

    def encode(self) -> bytes:
        body = RANDOMNESS_LAYOUT.build({
            "seed": list(self.seed),
            "randomness": list(self.randomness) if self.randomness is not None else None,
            "status": int(self.status),
        })
        return RANDOMNESS_DISCRIMINATOR + body

    def is_fulfilled(self) -> bool:
        return self.status == RandomnessStatus.FULFILLED and self.randomness is not None

    def to_dict(self):
        return {
            "seed": self.seed.hex(),
            "randomness": self.randomness.hex() if self.randomness is not None else None,
            "status": self.status.name.lower(),
        }

    def __eq__(self, other):
        if not isinstance(other, Randomness):
            return NotImplemented
        return (self.seed, self.randomness, self.status) == (other.seed, other.randomness, other.status)

    def __repr__(self):
        return f"Randomness({self.seed.hex()[:8]}, {self.status.name})"


class NetworkConfig:
    """Decoded VRF network configuration account."""

    def __init__(
        self,
        authority: Pubkey,
        treasury: Pubkey,
        request_fee: int = 0,
        fulfillment_authorities: Optional[List[Pubkey]] = None,
    ):
        self.authority = authority
        self.treasury = treasury
        self.request_fee = request_fee
        self.fulfillment_authorities = fulfillment_authorities or []

    @classmethod
    def decode(cls, data: bytes) -> "NetworkConfig":
        data = bytes(data)
        if len(data) < CONFIG_MIN_LEN:
            raise DecodeError(f"NetworkState: account too short ({len(data)} bytes)")
        _check_discriminator(data, NETWORK_STATE_DISCRIMINATOR, "NetworkState")

        parsed = _parse(NETWORK_CONFIG_LAYOUT, data[DISCRIMINATOR_LEN:], "NetworkState")
        return cls(
            authority=Pubkey(bytes(parsed.authority)),
            treasury=Pubkey(bytes(parsed.treasury)),
            request_fee=parsed.request_fee,
            fulfillment_authorities=[Pubkey(bytes(a)) for a in parsed.fulfillment_authorities],
        )

    def encode(self) -> bytes:
        body = NETWORK_CONFIG_LAYOUT.build({
            "authority": list(bytes(self.authority)),
            "treasury": list(bytes(self.treasury)),
            "request_fee": self.request_fee,
            "fulfillment_authorities": [list(bytes(a)) for a in self.fulfillment_authorities],
        })
        return NETWORK_STATE_DISCRIMINATOR + body


def decode_randomness(data: bytes) -> Randomness:
    return Randomness.decode(data)


def decode_config(data: bytes) -> Pubkey:
    """
    Extract the treasury address from a config account. Only the fixed
    header is read, so trailing fields never affect a request.
    """
    data = bytes(data)
    if len(data) < CONFIG_MIN_LEN:
        raise DecodeError(f"NetworkState: account too short ({len(data)} bytes)")
    _check_discriminator(data, NETWORK_STATE_DISCRIMINATOR, "NetworkState")

    parsed = _parse(CONFIG_HEADER_LAYOUT, data[DISCRIMINATOR_LEN:], "NetworkState")
    return Pubkey(bytes(parsed.treasury))
