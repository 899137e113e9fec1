# Configuration
from .config import Env, Network

# Errors
from .errors import (
    ErrorKind,
    VrfError,
    TransportError,
    NotFoundError,
    AccountNotFoundError,
    NoTransactionsError,
    NoFulfillmentError,
    FulfillmentTimeoutError,
    DecodeError,
    VerifyError,
    RandomnessVerifyError,
    NotFulfilledError,
)

# Core
from .address import derive, find_program_address, create_program_address
from .state import Randomness, RandomnessStatus, NetworkConfig, decode_randomness, decode_config
from .instruction import build_request
from .verify import find_fulfillment, verify_fulfillment

# Client
from .signer import Signer, NaclSigner
from .transport import SolanaTransport
from .requestor import VrfRequestor

__all__ = [
    # Configuration
    "Env",
    "Network",
    # Errors
    "ErrorKind",
    "VrfError",
    "TransportError",
    "NotFoundError",
    "AccountNotFoundError",
    "NoTransactionsError",
    "NoFulfillmentError",
    "FulfillmentTimeoutError",
    "DecodeError",
    "VerifyError",
    "RandomnessVerifyError",
    "NotFulfilledError",
    # Core
    "derive",
    "find_program_address",
    "create_program_address",
    "Randomness",
    "RandomnessStatus",
    "NetworkConfig",
    "decode_randomness",
    "decode_config",
    "build_request",
    "find_fulfillment",
    "verify_fulfillment",
    # Client
    "Signer",
    "NaclSigner",
    "SolanaTransport",
    "VrfRequestor",
]
