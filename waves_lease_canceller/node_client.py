"""REST client for interacting with a Waves node."""

from __future__ import annotations

"""Thin client for the node REST API.

Each helper maps onto one endpoint and returns the decoded JSON body. The
client does not interpret results beyond HTTP status handling; callers in
:mod:`waves_lease_canceller.network`, :mod:`waves_lease_canceller.leases`,
:mod:`waves_lease_canceller.fees` and :mod:`waves_lease_canceller.pipeline`
turn them into domain errors. Every request first consults the run's
:class:`~waves_lease_canceller.cancellation.CancelToken`.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import requests
from requests import RequestException, Response

from .cancellation import CancelToken
from .config import NodeConfig
from .errors import InvalidParameters, NetworkUnavailable

logger = logging.getLogger(__name__)

DEFAULT_URL_SCHEME = "http"
SUPPORTED_URL_SCHEMES = ("http", "https")


class NodeAPIError(RuntimeError):
    """Raised when the node answers with a non-success HTTP status."""

    def __init__(self, status_code: int, message: str, error: int | None = None) -> None:
        super().__init__(f"Node error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.error = error


class NodeTransportError(RuntimeError):
    """Raised when the node is unreachable or returns malformed data."""


def format_node_hint(error: NodeAPIError | None) -> str | None:
    """Return a short remediation hint for well-known node rejections."""

    if error is None:
        return None
    message = error.message.lower()
    if "cannot cancel already cancelled lease" in message or "already cancelled" in message:
        return (
            "The lease was cancelled after the active lease list was fetched. "
            "Run the canceller again to pick up the current set of leases."
        )
    if "lease" in message and ("not found" in message or "doesn't exist" in message):
        return "The node does not know this lease; it may have been cancelled already."
    if "insufficient fee" in message or ("fee" in message and "does not exceed minimal" in message):
        return (
            "The node requires a higher fee. The account may carry a script that imposes an "
            "extra fee which changed since it was queried."
        )
    if "negative waves balance" in message or "insufficient funds" in message:
        return "The account cannot pay the cancellation fee; top up its WAVES balance."
    if "invalid signature" in message or "proof doesn't validate" in message:
        return (
            "The node rejected the signature. If --account-pk was given, make sure it belongs "
            "to the secret key passed with --account-sk."
        )
    if "timestamp" in message and ("ahead" in message or "behind" in message):
        return "The local clock differs from the node's clock; synchronise the system time."
    return None


def normalize_node_url(raw: str) -> str:
    """Return an absolute http(s) URL for ``raw``.

    Host-only input such as ``localhost:6869`` gets the default ``http``
    scheme. Any other scheme is rejected.
    """

    if not raw or len(raw.split()) != 1:
        raise InvalidParameters(f"Invalid node URL '{raw}'")
    candidate = raw if "//" in raw else "//" + raw
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise InvalidParameters(f"Invalid node URL '{raw}': {exc}") from exc
    scheme = parts.scheme or DEFAULT_URL_SCHEME
    if scheme not in SUPPORTED_URL_SCHEMES:
        raise InvalidParameters(f"Unsupported URL scheme '{scheme}'")
    if not parts.netloc:
        raise InvalidParameters(f"Invalid node URL '{raw}': missing host")
    return urlunsplit((scheme, parts.netloc, parts.path.rstrip("/"), parts.query, ""))


class NodeClient:
    """Client for the subset of the node REST API used by the canceller."""

    def __init__(
        self,
        config: NodeConfig,
        token: CancelToken | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.token = token or CancelToken()
        self._session = session or requests.Session()
        self._base_url = normalize_node_url(config.base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    def request(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Response:
        """Perform a request and return the raw response, whatever its status."""

        self.token.raise_if_cancelled()
        url = f"{self._base_url}{path}"
        logger.debug("Node request %s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                json=payload,
                headers={"accept": "application/json"},
                timeout=self.config.timeout,
            )
        except RequestException as exc:
            logger.error(
                "Node request %s %s failed: %s",
                method,
                url,
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise NodeTransportError(
                f"Node request to {url} failed. Ensure the node is reachable and --node-api "
                "(or LEASE_CANCELLER_NODE_API) points to its REST API."
            ) from exc
        self.token.raise_if_cancelled()
        return response

    def call(self, method: str, path: str, *, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a request and return its decoded JSON body."""

        response = self.request(method, path, payload=payload)
        self._raise_for_status(response)
        try:
            return response.json()
        except ValueError as exc:
            logger.debug("Node JSON parse error: %s", response.text, exc_info=True)
            raise NodeTransportError("Node returned malformed JSON") from exc

    def _raise_for_status(self, response: Response) -> None:
        if response.ok:
            return
        try:
            body = response.json()
        except ValueError:
            body = response.text

        logger.debug("Node HTTP error %s from %s: %s", response.status_code, response.url, body)
        if isinstance(body, dict):
            message = str(body.get("message") or body.get("error") or response.reason)
            code = body.get("error") if isinstance(body.get("error"), int) else None
        else:
            message = str(body or response.reason)
            code = None
        raise NodeAPIError(response.status_code, message, error=code)

    # Endpoint wrappers -----------------------------------------------------

    def height(self) -> int:
        return int(self.call("GET", "/blocks/height")["height"])

    def last_block(self) -> Dict[str, Any]:
        return self.call("GET", "/blocks/last")

    def active_leases(self, address: str) -> List[Dict[str, Any]]:
        return self.call("GET", f"/leasing/active/{address}")

    def script_info(self, address: str) -> Dict[str, Any]:
        return self.call("GET", f"/addresses/scriptInfo/{address}")

    def broadcast(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        return self.call("POST", "/transactions/broadcast", payload=transaction)

    def transaction_status(self, tx_id: str) -> int:
        """Return the HTTP status of ``/transactions/info/{tx_id}``."""

        return self.request("GET", f"/transactions/info/{tx_id}").status_code


def connect(config: NodeConfig, token: CancelToken | None = None) -> NodeClient:
    """Create a client and probe the node by asking for the chain height."""

    try:
        client = NodeClient(config, token=token)
    except InvalidParameters as exc:
        raise NetworkUnavailable(f"Failed to connect to node at '{config.base_url}': {exc}") from exc
    try:
        height = client.height()
    except (NodeTransportError, NodeAPIError, KeyError, TypeError, ValueError) as exc:
        raise NetworkUnavailable(f"Failed to connect to node at '{client.base_url}': {exc}") from exc
    logger.info("Successfully connected to '%s' at height %d", client.base_url, height)
    return client
