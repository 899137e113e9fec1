"""
Thin adapter over solana-py's synchronous RPC client.

Only the calls the VRF client needs are exposed, and every result is
reduced to plain Python values (bytes, str, dict) so the rest of the
package never depends on solders response types. Any RPC or network
failure is re-raised as TransportError; nothing here retries.
"""

import json
import logging
from typing import List, Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction

from solvrf.errors import TransportError

logger = logging.getLogger(__name__)

# Largest page getSignaturesForAddress will return
SIGNATURE_PAGE_LIMIT = 1000

TRANSPORT_EXCEPTIONS = (SolanaRpcException, RPCException, UnconfirmedTxError, httpx.HTTPError)


class SolanaTransport:
    def __init__(self, rpc_url: str, commitment: Commitment = Confirmed, client: Optional[Client] = None):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = client or Client(rpc_url, commitment=commitment)

    def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Raw account data, or None when no account exists at address."""
        try:
            resp = self.client.get_account_info(address, commitment=self.commitment)
        except TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"getAccountInfo {address} failed: {e}") from e
        if resp.value is None:
            return None
        return bytes(resp.value.data)

    def get_latest_blockhash(self) -> Hash:
        try:
            return self.client.get_latest_blockhash(commitment=self.commitment).value.blockhash
        except TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"getLatestBlockhash failed: {e}") from e

    def send_and_confirm_transaction(self, tx: Transaction) -> str:
        opts = TxOpts(skip_confirmation=False, preflight_commitment=self.commitment)
        try:
            resp = self.client.send_raw_transaction(bytes(tx), opts=opts)
        except TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"sendTransaction failed: {e}") from e
        return str(resp.value)

    def get_signatures_for_address(self, address: Pubkey) -> List[str]:
        """
        Every transaction signature touching address, newest first.
        Pages backwards with `before` until the node returns a short page.
        """
        signatures: List[str] = []
        before = None
        while True:
            try:
                resp = self.client.get_signatures_for_address(
                    address,
                    before=before,
                    limit=SIGNATURE_PAGE_LIMIT,
                    commitment=self.commitment,
                )
            except TRANSPORT_EXCEPTIONS as e:
                raise TransportError(f"getSignaturesForAddress {address} failed: {e}") from e

            page = resp.value
            signatures.extend(str(item.signature) for item in page)
            if len(page) < SIGNATURE_PAGE_LIMIT:
                break
            before = page[-1].signature

        logger.debug("Found %d signature(s) for %s", len(signatures), address)
        return signatures

    def get_transaction(self, signature: str) -> Optional[dict]:
        """Transaction in jsonParsed form as a plain dict, or None if unknown."""
        try:
            resp = self.client.get_transaction(
                Signature.from_string(signature),
                encoding="jsonParsed",
                commitment=self.commitment,
                max_supported_transaction_version=0,
            )
        except TRANSPORT_EXCEPTIONS as e:
            raise TransportError(f"getTransaction {signature} failed: {e}") from e
        if resp.value is None:
            return None
        return json.loads(resp.value.to_json())
