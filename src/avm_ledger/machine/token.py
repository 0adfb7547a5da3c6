"""Token identities and non-fungible asset keys.

A token identity is 21 bytes. The last byte is the kind discriminator:
zero marks a fungible token, anything else marks a non-fungible asset class.
The integer form used by the generic value system puts those 21 bytes in the
most-significant end of a 32-byte big-endian word.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from ..errors import PreconditionViolation
from .uint256 import require_uint256

TOKEN_IDENTITY_LENGTH = 21
_INT_PADDING = bytes(32 - TOKEN_IDENTITY_LENGTH)

TOKEN_HASH_SEED = 9587356
ASSET_KEY_HASH_SEED = 3754345


def stable_hash(seed: int, *parts: bytes) -> int:
    """Process-independent 64-bit hash of a seed and byte strings."""
    digest = hashlib.blake2b(seed.to_bytes(8, "big"), digest_size=8)
    for part in parts:
        digest.update(part)
    return int.from_bytes(digest.digest(), "big", signed=True)


@dataclass(frozen=True)
class TokenIdentity:
    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)):
            raise PreconditionViolation(f"token identity must be bytes, got {type(self.raw).__name__}")
        if len(self.raw) != TOKEN_IDENTITY_LENGTH:
            raise PreconditionViolation(
                f"token identity must be {TOKEN_IDENTITY_LENGTH} bytes, got {len(self.raw)}"
            )
        object.__setattr__(self, "raw", bytes(self.raw))

    def __hash__(self) -> int:
        return stable_hash(TOKEN_HASH_SEED, self.raw)

    def __bytes__(self) -> bytes:
        return self.raw

    @property
    def is_fungible(self) -> bool:
        return self.raw[-1] == 0

    def to_int(self) -> int:
        return int.from_bytes(self.raw + _INT_PADDING, "big")

    @classmethod
    def from_int(cls, value: int) -> "TokenIdentity":
        """Keep the top 21 bytes; the low 88 bits are dropped."""
        value = require_uint256(value, "token integer")
        return cls(value.to_bytes(32, "big")[:TOKEN_IDENTITY_LENGTH])

    def hex(self) -> str:
        return self.raw.hex().upper()

    @classmethod
    def from_hex(cls, text: str) -> "TokenIdentity":
        cleaned = text[2:] if text.lower().startswith("0x") else text
        try:
            raw = bytes.fromhex(cleaned)
        except ValueError as exc:
            raise PreconditionViolation(f"invalid token identity hex: {text!r}") from exc
        return cls(raw)

    def __repr__(self) -> str:
        return f"TokenIdentity({self.hex()})"


FUNGIBLE_ZERO = TokenIdentity(bytes(TOKEN_IDENTITY_LENGTH))


def is_fungible(token: TokenIdentity) -> bool:
    return token.is_fungible


@dataclass(frozen=True)
class AssetKey:
    """One unit of a non-fungible asset class."""

    token: TokenIdentity
    instance_id: int

    def __post_init__(self) -> None:
        if not isinstance(self.token, TokenIdentity):
            raise PreconditionViolation("asset key token must be a TokenIdentity")
        if self.token.is_fungible:
            raise PreconditionViolation(f"asset key requires a non-fungible identity, got {self.token.hex()}")
        require_uint256(self.instance_id, "instance id")

    def __hash__(self) -> int:
        return stable_hash(ASSET_KEY_HASH_SEED, self.instance_id.to_bytes(32, "big"), self.token.raw)
