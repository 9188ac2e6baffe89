"""Cancel all active leases of a Waves account."""

__version__ = "0.1.0"

from .canceller import CancellationReport, RunOptions, cancel_active_leases, run
from .cancellation import CancelToken
from .errors import (
    BroadcastFailure,
    CancellerError,
    InvalidKeyFormat,
    InvalidParameters,
    NetworkUnavailable,
    OperationFailure,
    SigningFailure,
    UserTermination,
)

__all__ = [
    "__version__",
    "BroadcastFailure",
    "CancelToken",
    "CancellationReport",
    "CancellerError",
    "InvalidKeyFormat",
    "InvalidParameters",
    "NetworkUnavailable",
    "OperationFailure",
    "RunOptions",
    "SigningFailure",
    "UserTermination",
    "cancel_active_leases",
    "run",
]
