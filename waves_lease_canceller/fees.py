"""Fee computation and amount formatting for lease cancellations."""

from __future__ import annotations

import logging
from decimal import Decimal

from .crypto import Address
from .errors import NetworkUnavailable, OperationFailure
from .node_client import NodeAPIError, NodeClient, NodeTransportError

logger = logging.getLogger(__name__)

BASE_FEE = 100_000
WAVELETS_PER_WAVES = 10**8
AMOUNT_DECIMALS = 8


def format_amount(amount: int) -> str:
    """Render an amount of wavelets as ``"<n>.<8 digits> WAVES"``."""

    value = Decimal(amount) / Decimal(WAVELETS_PER_WAVES)
    return f"{value:.{AMOUNT_DECIMALS}f} WAVES"


def fetch_extra_fee(client: NodeClient, address: Address) -> int:
    """Return the script surcharge the node charges ``address``, or zero."""

    try:
        info = client.script_info(str(address))
    except (NodeTransportError, NodeAPIError) as exc:
        raise NetworkUnavailable(f"Failed to check extra fee on account '{address}': {exc}") from exc

    raw = info.get("extraFee") if isinstance(info, dict) else None
    if raw is None:
        return 0
    try:
        extra_fee = int(raw)
    except (TypeError, ValueError) as exc:
        raise OperationFailure(f"Node returned an invalid extra fee: {raw!r}") from exc
    if extra_fee < 0:
        raise OperationFailure(f"Node returned a negative extra fee: {extra_fee}")
    return extra_fee


def calculate_fee(extra_fee: int, base_fee: int = BASE_FEE) -> int:
    """Return the total fee of one lease cancellation."""

    if extra_fee < 0:
        raise ValueError(f"Extra fee must not be negative, got {extra_fee}")
    return base_fee + extra_fee


def resolve_fee(client: NodeClient, address: Address) -> int:
    """Query the surcharge for ``address`` and return the total fee."""

    extra_fee = fetch_extra_fee(client, address)
    if extra_fee:
        logger.info("Extra fee on cancel leasing: %s", format_amount(extra_fee))
    else:
        logger.info("No extra fee on cancel leasing")
    return calculate_fee(extra_fee)
