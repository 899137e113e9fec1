"""
Offchain verification of VRF fulfillments.

The oracle fulfills a request with one transaction holding two top-level
instructions: a native Ed25519SigVerify instruction over (oracle key,
seed, signature) and the VRF program's Fulfill instruction. Both commit
atomically, so the first job is to find that transaction in the history
of the randomness account. The second is to pull the oracle key out of
the Ed25519 instruction and check the signature again locally.

Ed25519SigVerify instruction data:

    u8   num_signatures
    u8   padding
    num_signatures x {
        u16 signature_offset
        u16 signature_instruction_index
        u16 public_key_offset
        u16 public_key_instruction_index
        u16 message_data_offset
        u16 message_data_size
        u16 message_instruction_index
    }
    ... key / signature / message bytes

An instruction index of 0xFFFF means "this instruction".
"""

import logging
import struct
from typing import Iterator, List, Optional

import base58
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

from solvrf.address import randomness_address, to_seed_bytes
from solvrf.config import ED25519_PROGRAM_ID
from solvrf.errors import (
    DecodeError,
    NoFulfillmentError,
    NoTransactionsError,
    RandomnessVerifyError,
)
from solvrf.instruction import decode_fulfill_data
from solvrf.state import SIGNATURE_LEN

logger = logging.getLogger(__name__)

ED25519_HEADER_LEN = 2
ED25519_OFFSETS_LEN = 14
ED25519_OFFSETS = struct.Struct("<7H")
PUBKEY_LEN = 32
CURRENT_INSTRUCTION = 0xFFFF


def _instructions(tx: dict) -> List[dict]:
    message = (tx.get("transaction") or {}).get("message") or {}
    return message.get("instructions") or []


def _instruction_data(ix: dict) -> Optional[bytes]:
    # Parsed instructions (system, token, ...) carry no raw data
    data = ix.get("data")
    if not isinstance(data, str):
        return None
    try:
        return base58.b58decode(data)
    except ValueError:
        return None


def is_failed_transaction(tx: Optional[dict]) -> bool:
    """True unless the transaction carries meta with a null error."""
    if not tx:
        return True
    meta = tx.get("meta")
    if meta is None:
        return True
    return meta.get("err") is not None


def _is_fulfill_for_seed(ix: dict, seed: bytes, program_id: str) -> bool:
    if ix.get("programId") != program_id:
        return False
    data = _instruction_data(ix)
    if data is None:
        return False
    try:
        fulfilled_seed, _ = decode_fulfill_data(data)
    except DecodeError:
        return False
    return fulfilled_seed == seed


def is_fulfillment_transaction(tx: dict, seed, env) -> bool:
    """
    A fulfillment carries, at top level, a Fulfill instruction for this seed
    addressed to the VRF program and an Ed25519SigVerify companion.
    """
    seed = to_seed_bytes(seed)
    program_id = str(env.vrf_program)
    instructions = _instructions(tx)

    has_fulfill = any(_is_fulfill_for_seed(ix, seed, program_id) for ix in instructions)
    has_companion = any(ix.get("programId") == ED25519_PROGRAM_ID for ix in instructions)
    return has_fulfill and has_companion


def find_fulfillment(seed, env, history) -> dict:
    """
    Walk the full history of the randomness account and return the first
    successful fulfillment transaction.

    `history` must provide get_signatures_for_address(address) and
    get_transaction(signature).
    """
    seed = to_seed_bytes(seed)
    address = randomness_address(env, seed)

    signatures = history.get_signatures_for_address(address)
    if not signatures:
        raise NoTransactionsError(f"No transactions found for seed {seed.hex()} ({address})")

    for signature in signatures:
        tx = history.get_transaction(signature)
        if not tx:
            logger.warning("Skipping transaction %s, not returned by the node", signature)
            continue
        if tx.get("meta") is None:
            logger.warning("Skipping transaction %s, no status meta", signature)
            continue
        if is_failed_transaction(tx):
            logger.warning("Skipping transaction %s due to error status", signature)
            continue
        if is_fulfillment_transaction(tx, seed, env):
            logger.debug("Fulfillment for %s found in %s", address, signature)
            return tx
        logger.debug("Transaction %s is not a fulfillment", signature)

    raise NoFulfillmentError(
        f"None of {len(signatures)} transaction(s) for seed {seed.hex()} is a fulfillment"
    )


def _iter_ed25519_entries(data: bytes, own_index: int) -> Iterator[tuple]:
    """Yield (public_key, signature, message) for self-contained entries."""
    if len(data) < ED25519_HEADER_LEN:
        raise RandomnessVerifyError("Ed25519 instruction data is empty")

    count = data[0]
    if count == 0:
        raise RandomnessVerifyError("Ed25519 instruction carries no signatures")
    if len(data) < ED25519_HEADER_LEN + count * ED25519_OFFSETS_LEN:
        raise RandomnessVerifyError("Ed25519 instruction offsets are truncated")

    local = (CURRENT_INSTRUCTION, own_index)
    for i in range(count):
        start = ED25519_HEADER_LEN + i * ED25519_OFFSETS_LEN
        (
            sig_offset, sig_ix,
            key_offset, key_ix,
            msg_offset, msg_size, msg_ix,
        ) = ED25519_OFFSETS.unpack_from(data, start)

        if sig_ix not in local or key_ix not in local or msg_ix not in local:
            logger.debug("Ed25519 entry %d references another instruction, ignored", i)
            continue
        if (key_offset + PUBKEY_LEN > len(data)
                or sig_offset + SIGNATURE_LEN > len(data)
                or msg_offset + msg_size > len(data)):
            raise RandomnessVerifyError(f"Ed25519 entry {i} points outside instruction data")

        yield (
            data[key_offset:key_offset + PUBKEY_LEN],
            data[sig_offset:sig_offset + SIGNATURE_LEN],
            data[msg_offset:msg_offset + msg_size],
        )


def extract_public_key(tx: dict, seed) -> bytes:
    """Public key the companion Ed25519 instruction used to check `seed`."""
    seed = to_seed_bytes(seed)
    for index, ix in enumerate(_instructions(tx)):
        if ix.get("programId") != ED25519_PROGRAM_ID:
            continue
        data = _instruction_data(ix)
        if data is None:
            raise RandomnessVerifyError("Ed25519 instruction data is not base58")
        for public_key, _, message in _iter_ed25519_entries(data, index):
            if message == seed:
                return public_key

    raise RandomnessVerifyError(
        "Unable to find transaction with EdSigVerify instruction for this seed"
    )


def verify_fulfillment(tx: dict, seed, signature: bytes) -> None:
    """
    Re-run the ed25519 check: message is the seed, signature is the stored
    randomness, key is the one taken from the companion instruction.
    Raises RandomnessVerifyError on any failure.
    """
    seed = to_seed_bytes(seed)
    signature = bytes(signature)
    if len(signature) != SIGNATURE_LEN:
        raise RandomnessVerifyError(f"Randomness must be {SIGNATURE_LEN} bytes, got {len(signature)}")

    public_key = extract_public_key(tx, seed)
    try:
        VerifyKey(public_key).verify(seed, signature)
    except (BadSignatureError, CryptoError, ValueError, TypeError) as e:
        raise RandomnessVerifyError(f"Randomness signature is invalid: {e}") from e
