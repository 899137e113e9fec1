import logging
import time
from typing import Optional

from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from solvrf.address import config_address, randomness_address, to_seed_bytes
from solvrf.config import DEFAULT_POLL_INTERVAL, DEFAULT_WAIT_TIMEOUT, Env, Network
from solvrf.errors import (
    AccountNotFoundError,
    DecodeError,
    FulfillmentTimeoutError,
    NotFulfilledError,
)
from solvrf.instruction import build_request
from solvrf.state import NetworkConfig, Randomness, decode_config
from solvrf.transport import SolanaTransport
from solvrf.verify import find_fulfillment, verify_fulfillment

logger = logging.getLogger(__name__)


class VrfRequestor:
    """
    Requests randomness from the VRF program and checks the result.

    Seeds may be given as 32 raw bytes, a solders Pubkey or a base58 string.
    Every call is a sequence of blocking RPC round trips; nothing is cached.
    """

    def __init__(self, env: Optional[Env] = None, transport=None):
        self.env = env or Env.for_network(Network.DEVNET)
        self.transport = transport or SolanaTransport(self.env.rpc_url)

    def randomness_address(self, seed) -> Pubkey:
        return randomness_address(self.env, to_seed_bytes(seed))

    def get_randomness(self, seed) -> Randomness:
        """
        Randomness stored for seed. Raises AccountNotFoundError if the seed
        has never been requested.
        """
        seed = to_seed_bytes(seed)
        address = randomness_address(self.env, seed)
        data = self.transport.get_account_data(address)
        if data is None:
            raise AccountNotFoundError(f"No randomness account for seed {seed.hex()} ({address})")

        randomness = Randomness.decode(data)
        if randomness.seed != seed:
            raise DecodeError(f"Account {address} holds seed {randomness.seed.hex()}, expected {seed.hex()}")
        return randomness

    def _config_data(self) -> bytes:
        address = config_address(self.env)
        data = self.transport.get_account_data(address)
        if data is None:
            raise AccountNotFoundError(f"No VRF config account at {address}")
        return data

    def get_network_config(self) -> NetworkConfig:
        return NetworkConfig.decode(self._config_data())

    def _treasury(self) -> Pubkey:
        return decode_config(self._config_data())

    def build_request_transaction(self, signer, seed) -> Transaction:
        """Signed, unsent request transaction with the signer as fee payer."""
        payer = Pubkey(signer.public_key())
        instruction = build_request(seed, payer, self._treasury(), self.env)

        blockhash = self.transport.get_latest_blockhash()
        message = Message.new_with_blockhash([instruction], payer, blockhash)
        signature = Signature.from_bytes(signer.sign(bytes(message)))
        return Transaction.populate(message, [signature])

    def request_randomness(self, signer, seed) -> Optional[str]:
        """
        Submit a request for seed and wait for confirmation. Returns the
        transaction signature, or None when an account for seed already
        exists (re-requesting is a no-op).
        """
        seed = to_seed_bytes(seed)
        try:
            self.get_randomness(seed)
        except AccountNotFoundError:
            pass
        else:
            logger.info("Randomness for seed %s exists, not requesting", seed.hex())
            return None

        tx = self.build_request_transaction(signer, seed)
        logger.info("Sending randomness request for seed %s", seed.hex())
        signature = self.transport.send_and_confirm_transaction(tx)
        logger.info("Request confirmed in %s, waiting for fulfillment", signature)
        return signature

    def wait_for_fulfillment(
        self,
        seed,
        timeout: float = DEFAULT_WAIT_TIMEOUT,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> Randomness:
        """Poll until the randomness for seed is fulfilled or timeout expires."""
        seed = to_seed_bytes(seed)
        deadline = time.monotonic() + timeout
        while True:
            try:
                randomness = self.get_randomness(seed)
                if randomness.is_fulfilled():
                    return randomness
                logger.debug("Seed %s still pending", seed.hex())
            except AccountNotFoundError:
                logger.debug("Seed %s not on chain yet", seed.hex())

            if time.monotonic() + interval > deadline:
                raise FulfillmentTimeoutError(
                    f"Randomness for seed {seed.hex()} not fulfilled within {timeout}s"
                )
            time.sleep(interval)

    def verify_randomness_offchain(self, seed, randomness: Randomness) -> None:
        """
        Locate the fulfillment transaction for seed and verify the stored
        signature against the oracle key it carries. Raises NotFulfilledError
        if there is no signature yet, NotFoundError if no fulfillment
        transaction exists, RandomnessVerifyError if the check fails.
        """
        seed = to_seed_bytes(seed)
        if randomness.randomness is None:
            raise NotFulfilledError(f"Randomness for seed {seed.hex()} is not fulfilled yet")

        tx = find_fulfillment(seed, self.env, self.transport)
        verify_fulfillment(tx, seed, randomness.randomness)
        logger.info("Randomness for seed %s verified offchain", seed.hex())
