"""Binary checkpoint format for fungible balances.

Layout: a 4-byte big-endian entry count followed by `count` entries of
21 identity bytes plus a 33-byte amount. The count is authoritative and the
buffer must be exactly `4 + count * 54` bytes long. Asset ownership is not
part of this format; encoding a ledger that holds assets drops them.
"""

from __future__ import annotations

from ..errors import BalanceOverflow, MalformedAmountData, MalformedLedgerData, PreconditionViolation
from .ledger import BalanceLedger
from .token import TOKEN_IDENTITY_LENGTH, TokenIdentity
from .uint256 import ENCODED_LENGTH, marshal_uint256, unmarshal_uint256

HEADER_LENGTH = 4
ENTRY_LENGTH = TOKEN_IDENTITY_LENGTH + ENCODED_LENGTH
MAX_ENTRIES = (1 << 32) - 1


def encode_ledger(ledger: BalanceLedger) -> bytes:
    entries = sorted(ledger.fungible_balances().items(), key=lambda item: item[0].raw)
    if len(entries) > MAX_ENTRIES:
        raise PreconditionViolation(f"too many balance entries to encode: {len(entries)}")
    out = bytearray(len(entries).to_bytes(HEADER_LENGTH, "big"))
    for token, amount in entries:
        out += token.raw
        out += marshal_uint256(amount)
    return bytes(out)


def decode_ledger(data: bytes) -> BalanceLedger:
    data = bytes(data)
    if len(data) < HEADER_LENGTH:
        raise MalformedLedgerData(f"ledger buffer shorter than {HEADER_LENGTH}-byte header: {len(data)} bytes")
    count = int.from_bytes(data[:HEADER_LENGTH], "big")
    body = len(data) - HEADER_LENGTH
    if body != count * ENTRY_LENGTH:
        raise MalformedLedgerData(
            f"ledger header declares {count} entries ({count * ENTRY_LENGTH} bytes) but body is {body} bytes"
        )

    ledger = BalanceLedger()
    for index in range(count):
        start = HEADER_LENGTH + index * ENTRY_LENGTH
        token = TokenIdentity(data[start : start + TOKEN_IDENTITY_LENGTH])
        if not token.is_fungible:
            raise MalformedLedgerData(f"entry {index} has non-fungible identity {token.hex()}")
        try:
            amount = unmarshal_uint256(data[start + TOKEN_IDENTITY_LENGTH : start + ENTRY_LENGTH])
        except MalformedAmountData as exc:
            raise MalformedLedgerData(f"entry {index}: {exc}") from exc
        try:
            ledger.add(token, amount)
        except BalanceOverflow as exc:
            raise MalformedLedgerData(f"entry {index}: {exc}") from exc
    return ledger
