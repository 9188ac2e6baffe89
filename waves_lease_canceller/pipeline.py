"""Preview or broadcast signed lease cancellations one at a time."""

from __future__ import annotations

import json
import logging
from typing import Callable

import requests

from .cancellation import CancelToken
from .config import DEFAULT_POLL_INTERVAL
from .errors import BroadcastFailure
from .node_client import NodeAPIError, NodeClient, NodeTransportError, format_node_hint
from .transactions import LeaseCancelTransaction

logger = logging.getLogger(__name__)


def _stdout_emit(text: str) -> None:
    print(text, flush=True)


class SubmissionPipeline:
    """Handle each signed transaction in either preview or live mode.

    In preview mode the transaction JSON goes to ``emit`` and the node is
    never asked to accept anything. In live mode each transaction is
    broadcast and then polled until the node knows it, before the caller may
    hand over the next one. The poll has no attempt limit; it ends on
    confirmation or cancellation only.
    """

    def __init__(
        self,
        client: NodeClient | None,
        *,
        dry_run: bool,
        token: CancelToken | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        emit: Callable[[str], None] | None = None,
    ) -> None:
        if client is None and not dry_run:
            raise ValueError("A node client is required unless running in dry-run mode")
        self.client = client
        self.dry_run = dry_run
        self.token = token or CancelToken()
        self.poll_interval = poll_interval
        self.emit = emit or _stdout_emit

    def submit(self, index: int, transaction: LeaseCancelTransaction) -> None:
        if not transaction.signed:
            raise ValueError("Refusing to submit an unsigned transaction")
        if self.dry_run:
            self.preview(index, transaction)
            return
        logger.info("Cancel transaction #%d ID: %s", index, transaction.id)
        self.broadcast(transaction)
        self.wait_for_confirmation(transaction.id)

    def preview(self, index: int, transaction: LeaseCancelTransaction) -> None:
        logger.info("Cancel transaction #%d:", index)
        self.emit(json.dumps(transaction.to_json(), indent=2))

    def broadcast(self, transaction: LeaseCancelTransaction) -> None:
        client = self._require_client()
        self.token.raise_if_cancelled()
        try:
            client.broadcast(transaction.to_json())
        except NodeAPIError as exc:
            message = f"Failed to broadcast lease cancel transaction {transaction.id}: {exc.message}"
            hint = format_node_hint(exc)
            if hint:
                message = f"{message}\nHint: {hint}"
            raise BroadcastFailure(message) from exc
        except NodeTransportError as exc:
            raise BroadcastFailure(
                f"Failed to broadcast lease cancel transaction {transaction.id}: {exc}"
            ) from exc

    def wait_for_confirmation(self, tx_id: str) -> None:
        """Block until the node reports ``tx_id`` as known."""

        client = self._require_client()
        logger.info("Waiting for transaction '%s' on blockchain...", tx_id)
        attempts = 0
        while True:
            self.token.raise_if_cancelled()
            attempts += 1
            try:
                status = client.transaction_status(tx_id)
            except NodeTransportError as exc:
                logger.warning("Status check for '%s' failed: %s", tx_id, exc)
                status = None
            if status == requests.codes.ok:
                logger.debug("Transaction '%s' known after %d checks", tx_id, attempts)
                return
            self.token.sleep(self.poll_interval)

    def _require_client(self) -> NodeClient:
        if self.client is None:
            raise ValueError("No node client configured for live submission")
        return self.client
