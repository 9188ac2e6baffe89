"""Network scheme discovery."""

from __future__ import annotations

import logging

from .crypto import b58decode
from .errors import NetworkUnavailable, OperationFailure
from .node_client import NodeAPIError, NodeClient, NodeTransportError

logger = logging.getLogger(__name__)


def resolve_scheme(client: NodeClient) -> int:
    """Return the scheme byte taken from the last block generator's address."""

    try:
        block = client.last_block()
    except (NodeTransportError, NodeAPIError) as exc:
        raise NetworkUnavailable(f"Failed to acquire blockchain scheme: {exc}") from exc

    generator = block.get("generator") if isinstance(block, dict) else None
    if not isinstance(generator, str):
        raise OperationFailure("Last block does not name its generator")
    try:
        raw = b58decode(generator)
    except ValueError as exc:
        raise OperationFailure(f"Invalid generator address '{generator}': {exc}") from exc
    if len(raw) < 2:
        raise OperationFailure(f"Invalid generator address '{generator}'")

    scheme = raw[1]
    logger.info("Blockchain scheme: %s", chr(scheme))
    return scheme
