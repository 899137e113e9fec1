#!/usr/bin/env python3
"""
solvrf CLI

Request, fetch and verify ORAO VRF randomness from the command line.

Usage:
    # Request randomness for a fresh random seed and wait for it
    python cli.py request --keypair ~/.config/solana/id.json --wait

    # Fetch randomness for a seed
    python cli.py get <SEED>

    # Verify fulfilled randomness offchain
    python cli.py verify <SEED>
"""

import argparse
import logging
import os
import sys

from solders.pubkey import Pubkey

from solvrf import Env, Network, NaclSigner, VrfError, VrfRequestor
from solvrf.config import DEFAULT_WAIT_TIMEOUT, VRF_PROGRAM_ID

logger = logging.getLogger(__name__)


def parse_seed(value: str) -> Pubkey:
    """argparse type for base58 seeds."""
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid base58 seed: {value!r}")


def build_requestor(args) -> VrfRequestor:
    env = Env.for_network(Network(args.network), program_id=args.program_id or VRF_PROGRAM_ID)
    if args.rpc_url:
        env.rpc_url = args.rpc_url
    return VrfRequestor(env)


def print_randomness(seed: Pubkey, randomness):
    print(f"  Seed:       {seed}")
    print(f"  Status:     {randomness.status.name.lower()}")
    print(f"  Randomness: {randomness.randomness.hex() if randomness.randomness else '-'}")


def cmd_request(args):
    requestor = build_requestor(args)
    signer = NaclSigner.from_keypair_file(os.path.expanduser(args.keypair))
    seed = args.seed if args.seed is not None else Pubkey(os.urandom(32))

    print(f"Seed: {seed}")
    signature = requestor.request_randomness(signer, seed)
    if signature is None:
        print("Randomness already requested for this seed")
    else:
        print(f"Request tx: {signature}")

    if args.wait:
        print("Waiting for fulfillment...")
        randomness = requestor.wait_for_fulfillment(seed, timeout=args.timeout)
        print_randomness(seed, randomness)


def cmd_get(args):
    requestor = build_requestor(args)
    print_randomness(args.seed, requestor.get_randomness(args.seed))


def cmd_verify(args):
    requestor = build_requestor(args)
    seed = args.seed
    randomness = requestor.get_randomness(seed)
    requestor.verify_randomness_offchain(seed, randomness)
    print(f"Randomness for {seed} verified")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ORAO VRF client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py request --keypair id.json --wait   # Request and wait
  python cli.py get <SEED>                         # Show randomness
  python cli.py verify <SEED>                      # Verify offchain
        """
    )

    parser.add_argument(
        "--network", "-n",
        choices=[n.value for n in Network],
        default=os.environ.get("SOLVRF_NETWORK", Network.DEVNET.value),
        help="Cluster to talk to (default: devnet)"
    )

    parser.add_argument(
        "--rpc-url",
        type=str,
        default=os.environ.get("SOLVRF_RPC_URL"),
        help="Override the cluster RPC endpoint"
    )

    parser.add_argument(
        "--program-id",
        type=str,
        default=os.environ.get("SOLVRF_PROGRAM_ID"),
        help="Override the VRF program id"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    request = sub.add_parser("request", help="Request randomness for a seed")
    request.add_argument("--keypair", "-k", required=True, help="Payer keypair file (solana-keygen JSON)")
    request.add_argument("--seed", "-s", type=parse_seed, default=None, help="Base58 seed (default: random)")
    request.add_argument("--wait", action="store_true", help="Wait until fulfilled")
    request.add_argument("--timeout", type=float, default=DEFAULT_WAIT_TIMEOUT, help="Wait timeout in seconds")
    request.set_defaults(func=cmd_request)

    get = sub.add_parser("get", help="Show randomness for a seed")
    get.add_argument("seed", type=parse_seed, help="Base58 seed")
    get.set_defaults(func=cmd_get)

    verify = sub.add_parser("verify", help="Verify fulfilled randomness offchain")
    verify.add_argument("seed", type=parse_seed, help="Base58 seed")
    verify.set_defaults(func=cmd_verify)

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )

    try:
        args.func(args)
    except VrfError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error ({e.kind.value}): {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
