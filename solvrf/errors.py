from enum import Enum


class ErrorKind(Enum):
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    DECODE = "decode"
    VERIFY = "verify"


class VrfError(Exception):
    """Base class for every error solvrf raises to its callers."""

    kind: ErrorKind


class TransportError(VrfError):
    """RPC or network failure, surfaced unchanged and never retried."""

    kind = ErrorKind.TRANSPORT


class NotFoundError(VrfError):
    kind = ErrorKind.NOT_FOUND


class AccountNotFoundError(NotFoundError):
    """No randomness (or config) account exists at the derived address."""


class NoTransactionsError(NotFoundError):
    """The randomness account has no transaction history at all."""


class NoFulfillmentError(NotFoundError):
    """History exists but no transaction in it is a fulfillment."""


class FulfillmentTimeoutError(NotFoundError):
    """Randomness was still pending when the polling deadline passed."""


class DecodeError(VrfError):
    """Account or instruction bytes do not match the program layout."""

    kind = ErrorKind.DECODE


class VerifyError(VrfError):
    kind = ErrorKind.VERIFY


class RandomnessVerifyError(VerifyError):
    """Signature check failed or the companion instruction is unusable."""


class NotFulfilledError(VerifyError):
    """The randomness carries no signature yet, so there is nothing to verify."""


class AddressDerivationError(RuntimeError):
    """No off-curve bump exists for the given seeds. Not expected in practice."""
