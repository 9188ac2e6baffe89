from __future__ import annotations

import json

import pytest

from waves_lease_canceller import canceller
from waves_lease_canceller.cancellation import CancelToken
from waves_lease_canceller.canceller import RunOptions, cancel_active_leases, run
from waves_lease_canceller.config import NodeConfig
from waves_lease_canceller.crypto import Address, TESTNET_SCHEME, b58encode, public_key_from_secret
from waves_lease_canceller.errors import BroadcastFailure, NetworkUnavailable, UserTermination
from waves_lease_canceller.fees import BASE_FEE
from waves_lease_canceller.node_client import NodeAPIError, NodeClient, NodeTransportError

SECRET = bytes(range(32))
GENERATOR = str(Address.from_public_key(TESTNET_SCHEME, public_key_from_secret(bytes([1] * 32))))


def _lease(index: int, amount: int) -> dict:
    return {"id": b58encode(bytes([index]) * 32), "amount": amount, "type": 8}


class StubNode:
    def __init__(self, leases=None, extra_fee: int = 0, reject_at: int | None = None) -> None:
        self.leases = leases or []
        self.extra_fee = extra_fee
        self.reject_at = reject_at
        self.calls: list[str] = []
        self.broadcasts: list[dict] = []

    def last_block(self):
        self.calls.append("last_block")
        return {"height": 10, "generator": GENERATOR}

    def active_leases(self, address: str):
        self.calls.append("active_leases")
        return list(self.leases)

    def script_info(self, address: str):
        self.calls.append("script_info")
        return {"address": address, "extraFee": self.extra_fee}

    def broadcast(self, payload):
        self.calls.append("broadcast")
        self.broadcasts.append(payload)
        if self.reject_at is not None and len(self.broadcasts) == self.reject_at:
            raise NodeAPIError(400, "Cannot cancel already cancelled lease")
        return payload

    def transaction_status(self, tx_id: str) -> int:
        self.calls.append("status")
        return 200


def _options(dry_run: bool, public_key: str | None = None) -> RunOptions:
    return RunOptions(
        secret_key=b58encode(SECRET),
        public_key=public_key,
        dry_run=dry_run,
        node=NodeConfig(poll_interval=0.01),
    )


def test_zero_leases_reports_success() -> None:
    node = StubNode()
    report = cancel_active_leases(node, _options(dry_run=False), CancelToken())

    assert report.count == 0
    assert report.transaction_ids == []
    assert "broadcast" not in node.calls


def test_three_leases_dry_run_prints_three_blocks_with_base_fee() -> None:
    node = StubNode(leases=[_lease(1, 10), _lease(2, 20), _lease(3, 30)])
    emitted: list[str] = []

    report = cancel_active_leases(node, _options(dry_run=True), CancelToken(), emit=emitted.append)

    assert report.count == 3
    assert report.total_amount == 60
    assert report.dry_run
    payloads = [json.loads(block) for block in emitted]
    assert len(payloads) == 3
    assert {payload["fee"] for payload in payloads} == {BASE_FEE}
    assert [payload["leaseId"] for payload in payloads] == [lease["id"] for lease in node.leases]
    assert {payload["chainId"] for payload in payloads} == {TESTNET_SCHEME}
    assert "broadcast" not in node.calls
    assert "status" not in node.calls


def test_surcharge_applies_to_every_transaction() -> None:
    node = StubNode(leases=[_lease(1, 10), _lease(2, 20)], extra_fee=400_000)
    emitted: list[str] = []
    cancel_active_leases(node, _options(dry_run=True), CancelToken(), emit=emitted.append)
    assert {json.loads(block)["fee"] for block in emitted} == {BASE_FEE + 400_000}


def test_live_run_broadcasts_and_confirms_in_lease_order() -> None:
    node = StubNode(leases=[_lease(1, 10), _lease(2, 20), _lease(3, 30)])

    report = cancel_active_leases(node, _options(dry_run=False), CancelToken())

    assert node.calls == [
        "last_block",
        "active_leases",
        "script_info",
        "broadcast",
        "status",
        "broadcast",
        "status",
        "broadcast",
        "status",
    ]
    assert [payload["leaseId"] for payload in node.broadcasts] == [lease["id"] for lease in node.leases]
    assert report.transaction_ids == [payload["id"] for payload in node.broadcasts]


def test_failure_stops_remaining_leases() -> None:
    node = StubNode(leases=[_lease(1, 10), _lease(2, 20), _lease(3, 30)], reject_at=2)

    with pytest.raises(BroadcastFailure):
        cancel_active_leases(node, _options(dry_run=False), CancelToken())

    assert node.calls.count("broadcast") == 2
    assert node.calls.count("status") == 1


def test_public_key_override_is_used_as_sender() -> None:
    other_public = public_key_from_secret(bytes([8] * 32))
    node = StubNode(leases=[_lease(1, 10)])
    emitted: list[str] = []

    cancel_active_leases(
        node,
        _options(dry_run=True, public_key=b58encode(other_public)),
        CancelToken(),
        emit=emitted.append,
    )

    assert json.loads(emitted[0])["senderPublicKey"] == b58encode(other_public)


def test_cancel_before_loop_prevents_any_broadcast() -> None:
    token = CancelToken()

    class CancelAfterFee(StubNode):
        def script_info(self, address: str):
            token.cancel()
            return super().script_info(address)

    node = CancelAfterFee(leases=[_lease(1, 10), _lease(2, 20)])
    with pytest.raises(UserTermination):
        cancel_active_leases(node, _options(dry_run=False), token)
    assert "broadcast" not in node.calls


def test_probe_failure_stops_before_key_derivation(monkeypatch: pytest.MonkeyPatch) -> None:
    derived: list[str] = []

    def failing_height(self):
        raise NodeTransportError("connection refused")

    def recording_resolve_identity(*args, **kwargs):
        derived.append("called")
        raise AssertionError("key derivation must not run")

    monkeypatch.setattr(NodeClient, "height", failing_height)
    monkeypatch.setattr(canceller, "resolve_identity", recording_resolve_identity)

    with pytest.raises(NetworkUnavailable):
        run(_options(dry_run=True))
    assert derived == []


def test_keyboard_interrupt_becomes_user_termination(monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupted(*_args, **_kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr(canceller, "connect", interrupted)
    token = CancelToken()

    with pytest.raises(UserTermination):
        run(_options(dry_run=False), token=token)
    assert token.cancelled


def test_run_options_repr_hides_secret() -> None:
    assert b58encode(SECRET) not in repr(_options(dry_run=True))
