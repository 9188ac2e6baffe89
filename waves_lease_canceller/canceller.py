"""End-to-end cancellation run for a single account."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from .cancellation import CancelToken
from .config import NodeConfig
from .errors import UserTermination
from .fees import format_amount, resolve_fee
from .identity import resolve_identity
from .leases import fetch_active_leases
from .network import resolve_scheme
from .node_client import NodeClient, connect
from .pipeline import SubmissionPipeline
from .transactions import build_signed_lease_cancel

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Inputs of one run; the secret key never leaves this object except for signing."""

    secret_key: str
    public_key: str | None = None
    dry_run: bool = False
    node: NodeConfig = field(default_factory=NodeConfig)

    def __repr__(self) -> str:
        return (
            f"RunOptions(secret_key='***', public_key={self.public_key!r}, "
            f"dry_run={self.dry_run!r}, node={self.node!r})"
        )


@dataclass
class CancellationReport:
    count: int
    total_amount: int
    transaction_ids: List[str]
    dry_run: bool


def cancel_active_leases(
    client: NodeClient,
    options: RunOptions,
    token: CancelToken,
    emit: Callable[[str], None] | None = None,
) -> CancellationReport:
    """Cancel every active lease of the account described by ``options``.

    Steps run strictly in order and the first failure ends the run. Leases
    already cancelled before a failure stay cancelled.
    """

    scheme = resolve_scheme(client)

    identity = resolve_identity(scheme, options.secret_key, options.public_key)
    if not options.public_key:
        logger.info("No different account public key is given")
    logger.info("Account's public key: %s", identity.public_key_b58)
    logger.info("Account's address: %s", identity.address)

    inventory = fetch_active_leases(client, identity.address)
    logger.info(
        "Found %d active leasings on account '%s' with the total amount of %s",
        len(inventory),
        identity.address,
        format_amount(inventory.total_amount),
    )

    fee = resolve_fee(client, identity.address)

    pipeline = SubmissionPipeline(
        client,
        dry_run=options.dry_run,
        token=token,
        poll_interval=options.node.poll_interval,
        emit=emit,
    )
    transaction_ids: List[str] = []
    for index, lease in enumerate(inventory.leases, start=1):
        token.raise_if_cancelled()
        transaction = build_signed_lease_cancel(identity, scheme, lease.id, fee)
        pipeline.submit(index, transaction)
        transaction_ids.append(transaction.id)

    logger.info("%d cancel transactions created", len(transaction_ids))
    logger.info("OK")
    return CancellationReport(
        count=len(transaction_ids),
        total_amount=inventory.total_amount,
        transaction_ids=transaction_ids,
        dry_run=options.dry_run,
    )


def run(
    options: RunOptions,
    token: CancelToken | None = None,
    emit: Callable[[str], None] | None = None,
) -> CancellationReport:
    """Connect to the node and cancel the account's leases.

    A :class:`KeyboardInterrupt` raised by the interrupt listener while a
    request is in flight surfaces as :class:`UserTermination`.
    """

    token = token or CancelToken()
    if options.dry_run:
        logger.info("DRY-RUN: No actual transactions will be created")
    try:
        client = connect(options.node, token=token)
        return cancel_active_leases(client, options, token, emit=emit)
    except KeyboardInterrupt as exc:
        token.cancel()
        raise UserTermination() from exc
