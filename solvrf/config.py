"""
config.py - solvrf configuration constants.
Networks, program id and account prefixes for the ORAO VRF program.
"""

import os
from enum import Enum

from solders.pubkey import Pubkey

# ORAO VRF program (same id on devnet and mainnet-beta)
VRF_PROGRAM_ID = "VRFzZoJdhFWL8rkvu87LpKM3RbcVezpMEc6X5GVDr7y"

# Native ed25519 signature verification program
ED25519_PROGRAM_ID = "Ed25519SigVerify111111111111111111111111111"

# PDA prefixes
CONFIG_ACCOUNT_SEED = "orao-vrf-network-configuration"
RANDOMNESS_ACCOUNT_SEED = "orao-vrf-randomness-request"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
LOCALNET_RPC_URL = "http://127.0.0.1:8899"

# Polling defaults for wait_for_fulfillment (seconds)
DEFAULT_WAIT_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 2.0


class Network(Enum):
    DEVNET = "devnet"
    MAINNET = "mainnet"
    LOCALNET = "localnet"

    @property
    def rpc_url(self) -> str:
        return {
            Network.DEVNET: DEVNET_RPC_URL,
            Network.MAINNET: MAINNET_RPC_URL,
            Network.LOCALNET: LOCALNET_RPC_URL,
        }[self]


def load_pubkey(value: str, name: str = "program id") -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as exc:
        raise ValueError(f"{name} is not a valid pubkey: {value!r}") from exc


class Env:
    """
    Static environment record: where the program lives and how its
    accounts are derived. Never mutated after construction.
    """

    def __init__(
        self,
        rpc_url: str,
        vrf_program: Pubkey,
        config_account_seed: str = CONFIG_ACCOUNT_SEED,
        randomness_account_seed: str = RANDOMNESS_ACCOUNT_SEED,
    ):
        self.rpc_url = rpc_url
        self.vrf_program = vrf_program
        self.config_account_seed = config_account_seed
        self.randomness_account_seed = randomness_account_seed

    @classmethod
    def for_network(cls, network: Network, program_id: str = VRF_PROGRAM_ID) -> "Env":
        return cls(
            rpc_url=network.rpc_url,
            vrf_program=load_pubkey(program_id),
        )

    @classmethod
    def from_environ(cls, environ=None) -> "Env":
        """
        Build an Env from SOLVRF_NETWORK, SOLVRF_RPC_URL and
        SOLVRF_PROGRAM_ID, falling back to devnet defaults.
        """
        environ = os.environ if environ is None else environ
        network = Network(environ.get("SOLVRF_NETWORK", Network.DEVNET.value))
        env = cls.for_network(
            network,
            program_id=environ.get("SOLVRF_PROGRAM_ID", VRF_PROGRAM_ID),
        )
        if environ.get("SOLVRF_RPC_URL"):
            env.rpc_url = environ["SOLVRF_RPC_URL"]
        return env

    def with_program(self, program_id) -> "Env":
        """Copy of this Env pointing at another program deployment."""
        if isinstance(program_id, str):
            program_id = load_pubkey(program_id)
        return Env(
            rpc_url=self.rpc_url,
            vrf_program=program_id,
            config_account_seed=self.config_account_seed,
            randomness_account_seed=self.randomness_account_seed,
        )

    def __repr__(self):
        return f"Env({self.rpc_url}, program={self.vrf_program})"
