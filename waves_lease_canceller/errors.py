"""Error taxonomy for the lease canceller.

Every failure raised by the library derives from :class:`CancellerError`. The
subclasses carry the process exit code that :func:`waves_lease_canceller.cli.main`
reports, so the mapping lives next to the error rather than in a lookup table.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_UNCLASSIFIED = 1
EXIT_INVALID_PARAMETERS = 2
EXIT_FAILURE = 70
EXIT_USER_TERMINATION = 130


class CancellerError(RuntimeError):
    """Base class for all errors surfaced by a cancellation run."""

    exit_code = EXIT_FAILURE


class InvalidParameters(CancellerError):
    """Raised when command-line input or configuration is unusable."""

    exit_code = EXIT_INVALID_PARAMETERS


class NetworkUnavailable(CancellerError):
    """Raised when a node request fails, including the initial probe."""


class InvalidKeyFormat(CancellerError):
    """Raised when a secret or public key is not valid base58 key material."""


class SigningFailure(CancellerError):
    """Raised when a transaction cannot be signed."""


class BroadcastFailure(CancellerError):
    """Raised when the node rejects a transaction or the broadcast fails."""


class OperationFailure(CancellerError):
    """Raised for any other operational failure."""


class UserTermination(CancellerError):
    """Raised when the operator interrupts the run."""

    exit_code = EXIT_USER_TERMINATION

    def __init__(self, message: str = "Interrupted by user") -> None:
        super().__init__(message)
