"""Lease cancellation transaction builder."""

from __future__ import annotations

import logging
import struct
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .crypto import DIGEST_SIZE, KEY_SIZE, b58decode, b58encode, blake2b256, sign
from .errors import SigningFailure
from .identity import AccountIdentity

logger = logging.getLogger(__name__)

LEASE_CANCEL_TYPE = 9
LEASE_CANCEL_VERSION = 2


def timestamp_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class LeaseCancelTransaction:
    """Version 2 lease cancellation carrying its signatures as proofs."""

    chain_id: int
    sender_public_key: bytes
    lease_id: str
    fee: int
    timestamp: int
    version: int = LEASE_CANCEL_VERSION
    proofs: List[bytes] = field(default_factory=list)

    def body_bytes(self) -> bytes:
        """Return the bytes covered by the signature and the id."""

        lease_id = b58decode(self.lease_id)
        if len(lease_id) != DIGEST_SIZE:
            raise ValueError(f"lease id must be {DIGEST_SIZE} bytes, got {len(lease_id)}")
        if len(self.sender_public_key) != KEY_SIZE:
            raise ValueError("sender public key must be 32 bytes")
        return (
            bytes([LEASE_CANCEL_TYPE, self.version, self.chain_id])
            + self.sender_public_key
            + struct.pack(">QQ", self.fee, self.timestamp)
            + lease_id
        )

    @property
    def id(self) -> str:
        return b58encode(blake2b256(self.body_bytes()))

    @property
    def signed(self) -> bool:
        return bool(self.proofs)

    def sign(self, secret_key: bytes) -> "LeaseCancelTransaction":
        """Attach a signature over the body bytes as the first proof."""

        try:
            signature = sign(secret_key, self.body_bytes())
        except (ValueError, TypeError, struct.error) as exc:
            raise SigningFailure(f"Failed to sign lease cancel transaction: {exc}") from exc
        self.proofs = [signature]
        return self

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": LEASE_CANCEL_TYPE,
            "version": self.version,
            "id": self.id,
            "senderPublicKey": b58encode(self.sender_public_key),
            "fee": self.fee,
            "timestamp": self.timestamp,
            "proofs": [b58encode(proof) for proof in self.proofs],
            "chainId": self.chain_id,
            "leaseId": self.lease_id,
        }


def build_lease_cancel(
    identity: AccountIdentity,
    scheme: int,
    lease_id: str,
    fee: int,
    timestamp: int | None = None,
) -> LeaseCancelTransaction:
    """Return an unsigned cancellation of ``lease_id`` sent by ``identity``."""

    return LeaseCancelTransaction(
        chain_id=scheme,
        sender_public_key=identity.public_key,
        lease_id=lease_id,
        fee=fee,
        timestamp=timestamp if timestamp is not None else timestamp_millis(),
    )


def build_signed_lease_cancel(
    identity: AccountIdentity,
    scheme: int,
    lease_id: str,
    fee: int,
    timestamp: int | None = None,
) -> LeaseCancelTransaction:
    transaction = build_lease_cancel(identity, scheme, lease_id, fee, timestamp=timestamp)
    return transaction.sign(identity.secret_key)
