"""Exception hierarchy for ledger and block-reason handling."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all avm_ledger errors."""


class PreconditionViolation(LedgerError):
    """Caller used an operation on the wrong kind of identity or value."""


class BalanceOverflow(LedgerError):
    """A credit would push a balance past the 256-bit range."""


class DecodeError(LedgerError, ValueError):
    """Untrusted bytes could not be decoded."""


class MalformedAmountData(DecodeError):
    pass


class MalformedLedgerData(DecodeError):
    pass


class UnknownBlockReasonTag(DecodeError):
    def __init__(self, tag: int | None) -> None:
        self.tag = tag
        super().__init__(f"unknown block reason tag: {tag!r}")


class TruncatedBlockReasonData(DecodeError):
    def __init__(self, tag: int | None, expected: int, actual: int) -> None:
        self.tag = tag
        self.expected = expected
        self.actual = actual
        super().__init__(f"block reason tag {tag!r} needs {expected} bytes, got {actual}")


class MalformedBlockReasonData(DecodeError):
    pass
