"""Key, address and signature primitives for Waves-style networks.

Accounts are curve25519 key pairs: the public key is the X25519 image of the
secret key, and signatures are Ed25519 signatures produced with the same
scalar, with the sign bit of the Edwards public key folded into the last byte
of the signature so that verifiers holding only the Montgomery public key can
recover it.

Addresses are 26 bytes: a version byte, the network scheme byte, 20 bytes of
``keccak256(blake2b256(public_key))`` and a 4 byte checksum.
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass

import base58
from Crypto.Hash import keccak
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from nacl import bindings
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import VerifyKey

KEY_SIZE = 32
DIGEST_SIZE = 32
SIGNATURE_SIZE = 64

ADDRESS_VERSION = 1
ADDRESS_SIZE = 26
ADDRESS_BODY_SIZE = 22
ADDRESS_HASH_SIZE = 20
ADDRESS_CHECKSUM_SIZE = 4

MAINNET_SCHEME = ord("W")
TESTNET_SCHEME = ord("T")

_FIELD_PRIME = 2**255 - 19
_NONCE_PREFIX = b"\xfe" + b"\xff" * 31


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=DIGEST_SIZE).digest()


def keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def secure_hash(data: bytes) -> bytes:
    """Return ``keccak256(blake2b256(data))``."""

    return keccak256(blake2b256(data))


def b58encode(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def b58decode(value: str) -> bytes:
    """Decode base58 text, raising ``ValueError`` on bad input."""

    if not value:
        raise ValueError("empty base58 string")
    return base58.b58decode(value)


def _check_key(key: bytes, label: str) -> None:
    if len(key) != KEY_SIZE:
        raise ValueError(f"{label} must be {KEY_SIZE} bytes, got {len(key)}")


def _clamp(secret_key: bytes) -> bytes:
    scalar = bytearray(secret_key)
    scalar[0] &= 248
    scalar[31] &= 127
    scalar[31] |= 64
    return bytes(scalar)


def _reduce(data: bytes) -> bytes:
    return bindings.crypto_core_ed25519_scalar_reduce(data.ljust(64, b"\x00"))


def public_key_from_secret(secret_key: bytes) -> bytes:
    """Derive the curve25519 public key for ``secret_key``."""

    _check_key(secret_key, "secret key")
    private_key = x25519.X25519PrivateKey.from_private_bytes(secret_key)
    return private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def sign(secret_key: bytes, message: bytes, random: bytes | None = None) -> bytes:
    """Sign ``message`` with a curve25519 secret key.

    ``random`` is mixed into the nonce; 64 fresh bytes are used when omitted.
    """

    _check_key(secret_key, "secret key")
    scalar = _clamp(secret_key)
    if random is None:
        random = os.urandom(64)
    try:
        reduced_scalar = _reduce(scalar)
        ed_public_key = bindings.crypto_scalarmult_ed25519_base_noclamp(reduced_scalar)
        nonce = _reduce(hashlib.sha512(_NONCE_PREFIX + scalar + message + random).digest())
        encoded_r = bindings.crypto_scalarmult_ed25519_base_noclamp(nonce)
        challenge = _reduce(hashlib.sha512(encoded_r + ed_public_key + message).digest())
        s = bindings.crypto_core_ed25519_scalar_add(
            bindings.crypto_core_ed25519_scalar_mul(challenge, reduced_scalar), nonce
        )
    except CryptoError as exc:
        raise ValueError(f"signature backend failed: {exc}") from exc

    signature = bytearray(encoded_r + s)
    signature[63] = (signature[63] & 0x7F) | (ed_public_key[31] & 0x80)
    return bytes(signature)


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Return ``True`` when ``signature`` is valid for ``message`` and ``public_key``."""

    if len(public_key) != KEY_SIZE or len(signature) != SIGNATURE_SIZE:
        return False
    u = int.from_bytes(public_key, "little") & ((1 << 255) - 1)
    if (u + 1) % _FIELD_PRIME == 0:
        return False
    y = (u - 1) * pow(u + 1, _FIELD_PRIME - 2, _FIELD_PRIME) % _FIELD_PRIME
    ed_public_key = bytearray(y.to_bytes(KEY_SIZE, "little"))
    ed_public_key[31] |= signature[63] & 0x80

    ed_signature = bytearray(signature)
    ed_signature[63] &= 0x7F
    try:
        VerifyKey(bytes(ed_public_key)).verify(message, bytes(ed_signature))
    except (BadSignatureError, ValueError):
        return False
    return True


@dataclass(frozen=True)
class Address:
    """A 26 byte account address bound to one network scheme."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != ADDRESS_SIZE:
            raise ValueError(f"address must be {ADDRESS_SIZE} bytes, got {len(self.raw)}")

    @classmethod
    def from_public_key(cls, scheme: int, public_key: bytes) -> "Address":
        _check_key(public_key, "public key")
        body = bytes([ADDRESS_VERSION, scheme]) + secure_hash(public_key)[:ADDRESS_HASH_SIZE]
        return cls(body + secure_hash(body)[:ADDRESS_CHECKSUM_SIZE])

    @classmethod
    def from_base58(cls, value: str) -> "Address":
        raw = b58decode(value)
        if len(raw) != ADDRESS_SIZE:
            raise ValueError(f"address must be {ADDRESS_SIZE} bytes, got {len(raw)}")
        if raw[0] != ADDRESS_VERSION:
            raise ValueError(f"unsupported address version {raw[0]}")
        body, checksum = raw[:ADDRESS_BODY_SIZE], raw[ADDRESS_BODY_SIZE:]
        if secure_hash(body)[:ADDRESS_CHECKSUM_SIZE] != checksum:
            raise ValueError("address checksum mismatch")
        return cls(raw)

    @property
    def scheme(self) -> int:
        return self.raw[1]

    def __str__(self) -> str:
        return b58encode(self.raw)
