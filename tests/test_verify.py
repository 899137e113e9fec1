import unittest

from nacl.signing import SigningKey
from solders.pubkey import Pubkey

from ledger_fakes import FakeLedger, b58, ed25519_instruction_data, fulfillment_tx, make_tx
from solvrf.address import randomness_address
from solvrf.config import ED25519_PROGRAM_ID, Env, Network
from solvrf.errors import (
    ErrorKind,
    NoFulfillmentError,
    NoTransactionsError,
    NotFoundError,
    RandomnessVerifyError,
)
from solvrf.instruction import encode_request_data
from solvrf.verify import (
    extract_public_key,
    find_fulfillment,
    is_failed_transaction,
    is_fulfillment_transaction,
    verify_fulfillment,
)

TEST_PROGRAM = "VRFUm3dhiqtyW6nj8XghcPLJbCXg9Hj85iABpxwq1Xz"


class VerifyTestCase(unittest.TestCase):

    def setUp(self):
        self.env = Env.for_network(Network.DEVNET).with_program(TEST_PROGRAM)
        self.oracle = SigningKey.generate()
        self.seed = bytes([5]) * 32
        self.signature = self.oracle.sign(self.seed).signature
        self.address = randomness_address(self.env, self.seed)
        self.ledger = FakeLedger()

    def request_tx(self):
        return make_tx([{
            "programId": str(self.env.vrf_program),
            "accounts": [],
            "data": b58(encode_request_data(self.seed)),
        }])


class TestFindFulfillment(VerifyTestCase):

    def test_finds_fulfillment(self):
        self.ledger.add_transaction(self.address, "req", self.request_tx())
        good = fulfillment_tx(self.env, self.seed, self.oracle)
        self.ledger.add_transaction(self.address, "ful", good)

        self.assertIs(find_fulfillment(self.seed, self.env, self.ledger), good)

    def test_no_signatures(self):
        with self.assertRaises(NoTransactionsError) as cm:
            find_fulfillment(self.seed, self.env, self.ledger)
        self.assertIsInstance(cm.exception, NotFoundError)
        self.assertEqual(cm.exception.kind, ErrorKind.NOT_FOUND)

    def test_only_request_in_history(self):
        self.ledger.add_transaction(self.address, "req", self.request_tx())
        with self.assertRaises(NoFulfillmentError) as cm:
            find_fulfillment(self.seed, self.env, self.ledger)
        self.assertEqual(cm.exception.kind, ErrorKind.NOT_FOUND)

    def test_failed_transaction_skipped(self):
        """A failed transaction never counts, even with a valid companion."""
        failed = fulfillment_tx(self.env, self.seed, self.oracle, err={"InstructionError": [1, "Custom"]})
        self.ledger.add_transaction(self.address, "failed", failed)

        with self.assertRaises(NoFulfillmentError):
            find_fulfillment(self.seed, self.env, self.ledger)

    def test_failed_newest_then_good_older(self):
        good = fulfillment_tx(self.env, self.seed, self.oracle)
        failed = fulfillment_tx(self.env, self.seed, self.oracle, err={"InstructionError": [1, "Custom"]})
        self.ledger.add_transaction(self.address, "good", good)
        self.ledger.add_transaction(self.address, "failed", failed)

        self.assertIs(find_fulfillment(self.seed, self.env, self.ledger), good)

    def test_scans_whole_history(self):
        good = fulfillment_tx(self.env, self.seed, self.oracle)
        self.ledger.add_transaction(self.address, "good", good)
        for i in range(5):
            self.ledger.add_transaction(self.address, f"other{i}", self.request_tx())

        self.assertIs(find_fulfillment(self.seed, self.env, self.ledger), good)

    def test_missing_transaction_or_meta_skipped(self):
        no_meta = fulfillment_tx(self.env, self.seed, self.oracle)
        del no_meta["meta"]
        self.ledger.add_transaction(self.address, "no_meta", no_meta)
        self.ledger.history[str(self.address)].insert(0, "unknown")

        with self.assertRaises(NoFulfillmentError):
            find_fulfillment(self.seed, self.env, self.ledger)

    def test_skip_reasons_logged(self):
        """Each kind of skipped transaction is logged with its own reason."""
        no_meta = fulfillment_tx(self.env, self.seed, self.oracle)
        del no_meta["meta"]
        failed = fulfillment_tx(self.env, self.seed, self.oracle, err={"InstructionError": [1, "Custom"]})
        self.ledger.add_transaction(self.address, "failed", failed)
        self.ledger.add_transaction(self.address, "no_meta", no_meta)
        self.ledger.history[str(self.address)].insert(0, "unknown")

        with self.assertLogs("solvrf.verify", level="WARNING") as logs:
            with self.assertRaises(NoFulfillmentError):
                find_fulfillment(self.seed, self.env, self.ledger)

        self.assertEqual(logs.output, [
            "WARNING:solvrf.verify:Skipping transaction unknown, not returned by the node",
            "WARNING:solvrf.verify:Skipping transaction no_meta, no status meta",
            "WARNING:solvrf.verify:Skipping transaction failed due to error status",
        ])


class TestIsFulfillmentTransaction(VerifyTestCase):

    def test_genuine(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        self.assertTrue(is_fulfillment_transaction(tx, self.seed, self.env))
        self.assertFalse(is_failed_transaction(tx))

    def test_requires_companion(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        tx["transaction"]["message"]["instructions"].pop(0)
        self.assertFalse(is_fulfillment_transaction(tx, self.seed, self.env))

    def test_requires_vrf_program(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        tx["transaction"]["message"]["instructions"][1]["programId"] = str(Pubkey(bytes(32)))
        self.assertFalse(is_fulfillment_transaction(tx, self.seed, self.env))

    def test_other_seed(self):
        tx = fulfillment_tx(self.env, bytes([6]) * 32, self.oracle)
        self.assertFalse(is_fulfillment_transaction(tx, self.seed, self.env))

    def test_parsed_instructions_ignored(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        tx["transaction"]["message"]["instructions"].insert(0, {
            "program": "system",
            "programId": "11111111111111111111111111111111",
            "parsed": {"type": "transfer", "info": {}},
        })
        self.assertTrue(is_fulfillment_transaction(tx, self.seed, self.env))
        verify_fulfillment(tx, self.seed, self.signature)


class TestVerifyFulfillment(VerifyTestCase):

    def test_genuine_signature(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        self.assertEqual(extract_public_key(tx, self.seed), self.oracle.verify_key.encode())
        verify_fulfillment(tx, self.seed, self.signature)

    def test_one_bit_flipped(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        flipped = bytearray(self.signature)
        flipped[10] ^= 0x01
        with self.assertRaises(RandomnessVerifyError) as cm:
            verify_fulfillment(tx, self.seed, bytes(flipped))
        self.assertEqual(cm.exception.kind, ErrorKind.VERIFY)

    def test_zero_signature_rejected(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, bytes(64))

    def test_wrong_length_signature(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, self.signature[:63])

    def test_signature_from_other_key(self):
        other = SigningKey.generate()
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, other.sign(self.seed).signature)

    def test_missing_companion(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        tx["transaction"]["message"]["instructions"].pop(0)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, self.signature)

    def test_companion_for_other_message(self):
        other_seed = bytes([6]) * 32
        data = ed25519_instruction_data(
            self.oracle.verify_key.encode(), self.oracle.sign(other_seed).signature, other_seed
        )
        tx = fulfillment_tx(self.env, self.seed, self.oracle, ed25519_data=data)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, self.signature)

    def test_companion_referencing_other_instruction(self):
        data = ed25519_instruction_data(
            self.oracle.verify_key.encode(), self.signature, self.seed, instruction_index=1
        )
        tx = fulfillment_tx(self.env, self.seed, self.oracle, ed25519_data=data)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, self.signature)

    def test_companion_own_index_accepted(self):
        data = ed25519_instruction_data(
            self.oracle.verify_key.encode(), self.signature, self.seed, instruction_index=0
        )
        tx = fulfillment_tx(self.env, self.seed, self.oracle, ed25519_data=data)
        verify_fulfillment(tx, self.seed, self.signature)

    def test_truncated_companion(self):
        full = ed25519_instruction_data(self.oracle.verify_key.encode(), self.signature, self.seed)
        for n in (0, 1, 2, 10, 16, 47, 100):
            tx = fulfillment_tx(self.env, self.seed, self.oracle, ed25519_data=full[:n])
            with self.assertRaises(RandomnessVerifyError):
                verify_fulfillment(tx, self.seed, self.signature)

    def test_companion_not_base58(self):
        tx = fulfillment_tx(self.env, self.seed, self.oracle)
        tx["transaction"]["message"]["instructions"][0]["data"] = "0OIl"
        self.assertEqual(tx["transaction"]["message"]["instructions"][0]["programId"], ED25519_PROGRAM_ID)
        with self.assertRaises(RandomnessVerifyError):
            verify_fulfillment(tx, self.seed, self.signature)


if __name__ == "__main__":
    unittest.main()
