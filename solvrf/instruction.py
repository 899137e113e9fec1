from typing import Tuple

from borsh_construct import CStruct, U8
from construct import ConstructError
from nacl.encoding import RawEncoder
from nacl.hash import sha256
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID

from solvrf.address import SEED_LEN, config_address, randomness_address, to_seed_bytes
from solvrf.errors import DecodeError
from solvrf.state import SIGNATURE_LEN


def sighash(name: str) -> bytes:
    return sha256(f"global:{name}".encode(), encoder=RawEncoder)[:8]


REQUEST_DISCRIMINATOR = sighash("request")
FULFILL_DISCRIMINATOR = sighash("fulfill")

RequestLayout = CStruct("seed" / U8[SEED_LEN])
FulfillLayout = CStruct(
    "seed" / U8[SEED_LEN],
    "signature" / U8[SIGNATURE_LEN],
)

REQUEST_DATA_LEN = len(REQUEST_DISCRIMINATOR) + SEED_LEN
FULFILL_DATA_LEN = len(FULFILL_DISCRIMINATOR) + SEED_LEN + SIGNATURE_LEN


def encode_request_data(seed: bytes) -> bytes:
    return REQUEST_DISCRIMINATOR + RequestLayout.build({"seed": list(to_seed_bytes(seed))})


def decode_request_data(data: bytes) -> bytes:
    """Recover the seed from Request instruction data."""
    data = bytes(data)
    if len(data) != REQUEST_DATA_LEN or data[:8] != REQUEST_DISCRIMINATOR:
        raise DecodeError("Not a Request instruction")
    try:
        return bytes(RequestLayout.parse(data[8:]).seed)
    except ConstructError as e:
        raise DecodeError(f"Request: {e}") from e


def encode_fulfill_data(seed: bytes, signature: bytes) -> bytes:
    """Oracle-side Fulfill payload. solvrf never submits it."""
    return FULFILL_DISCRIMINATOR + FulfillLayout.build({
        "seed": list(to_seed_bytes(seed)),
        "signature": list(signature),
    })


def decode_fulfill_data(data: bytes) -> Tuple[bytes, bytes]:
    """Return (seed, signature) from Fulfill instruction data."""
    data = bytes(data)
    if len(data) != FULFILL_DATA_LEN or data[:8] != FULFILL_DISCRIMINATOR:
        raise DecodeError("Not a Fulfill instruction")
    try:
        parsed = FulfillLayout.parse(data[8:])
    except ConstructError as e:
        raise DecodeError(f"Fulfill: {e}") from e
    return bytes(parsed.seed), bytes(parsed.signature)


def build_request(seed, payer: Pubkey, treasury: Pubkey, env) -> Instruction:
    """
    Request instruction for `seed`. Account order is fixed by the program:
    payer, randomness request, network config, treasury, system program.
    """
    seed = to_seed_bytes(seed)
    accounts = [
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=randomness_address(env, seed), is_signer=False, is_writable=True),
        AccountMeta(pubkey=config_address(env), is_signer=False, is_writable=False),
        AccountMeta(pubkey=treasury, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(env.vrf_program, encode_request_data(seed), accounts)
