"""Fixed-width 33-byte integer encoding shared by the ledger and block-reason codecs."""

from __future__ import annotations

from ..errors import MalformedAmountData, PreconditionViolation

UINT256_MAX = (1 << 256) - 1
INT_VALUE_TYPE = 0x00
ENCODED_LENGTH = 33


def is_uint256(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= UINT256_MAX


def require_uint256(value: object, what: str = "amount") -> int:
    if not is_uint256(value):
        raise PreconditionViolation(f"{what} must be an integer in [0, 2**256), got {value!r}")
    return int(value)  # type: ignore[arg-type]


def marshal_uint256(value: int) -> bytes:
    """Encode as one format byte followed by the 32-byte big-endian magnitude."""
    value = require_uint256(value)
    return bytes([INT_VALUE_TYPE]) + value.to_bytes(32, "big")


def unmarshal_uint256(data: bytes) -> int:
    if len(data) != ENCODED_LENGTH:
        raise MalformedAmountData(f"encoded amount must be {ENCODED_LENGTH} bytes, got {len(data)}")
    if data[0] != INT_VALUE_TYPE:
        raise MalformedAmountData(f"unexpected amount format byte 0x{data[0]:02x}")
    return int.from_bytes(data[1:], "big")
