"""Active lease discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .crypto import Address
from .errors import NetworkUnavailable, OperationFailure
from .node_client import NodeAPIError, NodeClient, NodeTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveLease:
    id: str
    amount: int


@dataclass(frozen=True)
class LeaseInventory:
    """Snapshot of the account's active leases in node order."""

    leases: Tuple[ActiveLease, ...]
    total_amount: int

    def __len__(self) -> int:
        return len(self.leases)


def _parse_lease(entry: Dict[str, Any]) -> ActiveLease:
    try:
        return ActiveLease(id=str(entry["id"]), amount=int(entry["amount"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise OperationFailure(f"Malformed lease entry from node: {entry!r}") from exc


def fetch_active_leases(client: NodeClient, address: Address) -> LeaseInventory:
    """Return the active leases where ``address`` is the lessor."""

    try:
        entries = client.active_leases(str(address))
    except (NodeTransportError, NodeAPIError) as exc:
        raise NetworkUnavailable(f"Failed to get active leasings: {exc}") from exc
    if not isinstance(entries, list):
        raise OperationFailure("Node returned an unexpected active lease payload")

    leases = tuple(_parse_lease(entry) for entry in entries)
    total = sum(lease.amount for lease in leases)
    logger.debug("Fetched %d active leases for %s", len(leases), address)
    return LeaseInventory(leases=leases, total_amount=total)
