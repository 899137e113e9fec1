import logging
from typing import List, Tuple, Union

from nacl.encoding import RawEncoder
from nacl.hash import sha256
from solders.pubkey import Pubkey

from solvrf.errors import AddressDerivationError

logger = logging.getLogger(__name__)

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LEN = 32

# Randomness seeds are always exactly this long
SEED_LEN = 32

SeedLike = Union[bytes, Pubkey]


def to_seed_bytes(seed) -> bytes:
    """Normalise a seed given as bytes, Pubkey or base58 string to 32 raw bytes."""
    if isinstance(seed, str):
        seed = Pubkey.from_string(seed)
    raw = bytes(seed)
    if len(raw) != SEED_LEN:
        raise ValueError(f"Seed must be {SEED_LEN} bytes, got {len(raw)}")
    return raw


def create_program_address(seeds: List[bytes], program_id: Pubkey) -> Pubkey:
    """
    Hash seeds and program id into an address that has no private key.
    Raises ValueError if the result lies on the ed25519 curve.
    """
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"Too many seeds: {len(seeds)} > {MAX_SEEDS}")

    payload = b""
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"Seed exceeds {MAX_SEED_LEN} bytes: {len(seed)}")
        payload += seed
    payload += bytes(program_id) + PDA_MARKER

    candidate = Pubkey(sha256(payload, encoder=RawEncoder))
    if candidate.is_on_curve():
        raise ValueError("Invalid seeds, address must fall off the curve")
    return candidate


def find_program_address(seeds: List[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """
    Canonical bump search: try bump 255 down to 0 and return the first
    off-curve address together with its bump.
    """
    for bump in range(255, -1, -1):
        try:
            address = create_program_address(list(seeds) + [bytes([bump])], program_id)
        except ValueError:
            continue
        return address, bump

    raise AddressDerivationError(f"No viable bump for program {program_id}")


def derive_with_bump(seed: SeedLike, prefix: str, program_id: Pubkey) -> Tuple[Pubkey, int]:
    return find_program_address([prefix.encode(), bytes(seed)], program_id)


def derive(seed: SeedLike, prefix: str, program_id: Pubkey) -> Pubkey:
    """Program-derived address for (prefix, seed) under program_id."""
    address, _ = derive_with_bump(seed, prefix, program_id)
    return address


def config_address(env) -> Pubkey:
    address, bump = find_program_address([env.config_account_seed.encode()], env.vrf_program)
    logger.debug("Config account %s (bump %d)", address, bump)
    return address


def randomness_address(env, seed: SeedLike) -> Pubkey:
    return derive(seed, env.randomness_account_seed, env.vrf_program)
