"""Account key pair and address resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .crypto import Address, KEY_SIZE, b58decode, b58encode, public_key_from_secret
from .errors import InvalidKeyFormat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountIdentity:
    """Keys and address of the account whose leases are cancelled.

    ``public_key`` and ``address`` are what transactions reference. When a
    public key override is in effect they need not belong to ``secret_key``,
    which is only ever used for signing.
    """

    secret_key: bytes
    public_key: bytes
    address: Address

    @property
    def public_key_b58(self) -> str:
        return b58encode(self.public_key)


def decode_key(value: str, label: str) -> bytes:
    """Decode a base58 key of exactly ``KEY_SIZE`` bytes."""

    try:
        key = b58decode(value.strip())
    except ValueError as exc:
        raise InvalidKeyFormat(f"Failed to parse {label}: {exc}") from exc
    if len(key) != KEY_SIZE:
        raise InvalidKeyFormat(
            f"Failed to parse {label}: expected {KEY_SIZE} bytes, got {len(key)}"
        )
    return key


def resolve_identity(
    scheme: int, secret_key_b58: str, public_key_b58: str | None = None
) -> AccountIdentity:
    """Derive the account identity from a secret key and optional public key."""

    secret_key = decode_key(secret_key_b58, "account private key")
    public_key = public_key_from_secret(secret_key)
    if public_key_b58:
        public_key = decode_key(public_key_b58, "additional public key")
    address = Address.from_public_key(scheme, public_key)
    return AccountIdentity(secret_key=secret_key, public_key=public_key, address=address)
