"""Why a machine is not runnable, and the fixed-width wire codec for it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Union

from ..errors import (
    MalformedAmountData,
    MalformedBlockReasonData,
    PreconditionViolation,
    TruncatedBlockReasonData,
    UnknownBlockReasonTag,
)
from .token import TOKEN_IDENTITY_LENGTH, TokenIdentity
from .uint256 import ENCODED_LENGTH, marshal_uint256, require_uint256, unmarshal_uint256


class BlockType(IntEnum):
    NOT = 0
    HALT = 1
    ERROR = 2
    BREAKPOINT = 3
    INBOX = 4
    SEND = 5


@dataclass(frozen=True)
class NotBlocked:
    block_type: ClassVar[BlockType] = BlockType.NOT

    def to_dict(self) -> dict[str, Any]:
        return {"type": "not_blocked"}


@dataclass(frozen=True)
class HaltBlocked:
    block_type: ClassVar[BlockType] = BlockType.HALT

    def to_dict(self) -> dict[str, Any]:
        return {"type": "halt"}


@dataclass(frozen=True)
class ErrorBlocked:
    block_type: ClassVar[BlockType] = BlockType.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {"type": "error"}


@dataclass(frozen=True)
class BreakpointBlocked:
    block_type: ClassVar[BlockType] = BlockType.BREAKPOINT

    def to_dict(self) -> dict[str, Any]:
        return {"type": "breakpoint"}


@dataclass(frozen=True)
class InboxBlocked:
    """Waiting for an inbox message at or after `inbox_index`."""

    inbox_index: int
    block_type: ClassVar[BlockType] = BlockType.INBOX

    def __post_init__(self) -> None:
        require_uint256(self.inbox_index, "inbox index")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "inbox", "inbox_index": str(self.inbox_index)}


@dataclass(frozen=True)
class SendBlocked:
    """An outbound transfer of `amount` of `token` could not complete."""

    amount: int
    token: TokenIdentity
    block_type: ClassVar[BlockType] = BlockType.SEND

    def __post_init__(self) -> None:
        require_uint256(self.amount)
        if not isinstance(self.token, TokenIdentity):
            raise PreconditionViolation("send-blocked token must be a TokenIdentity")

    def to_dict(self) -> dict[str, Any]:
        return {"type": "send", "amount": str(self.amount), "token": self.token.hex()}


BlockReason = Union[NotBlocked, HaltBlocked, ErrorBlocked, BreakpointBlocked, InboxBlocked, SendBlocked]

_WIRE_LENGTHS = MappingProxyType(
    {
        BlockType.NOT: 1,
        BlockType.HALT: 1,
        BlockType.ERROR: 1,
        BlockType.BREAKPOINT: 1,
        BlockType.INBOX: 1 + ENCODED_LENGTH,
        BlockType.SEND: 1 + ENCODED_LENGTH + TOKEN_IDENTITY_LENGTH,
    }
)


def block_reason_length(block_type: BlockType | int) -> int:
    """Encoded size of a variant, tag byte included."""
    try:
        return _WIRE_LENGTHS[BlockType(block_type)]
    except ValueError as exc:
        raise UnknownBlockReasonTag(int(block_type)) from exc


def is_blocked(reason: BlockReason) -> bool:
    return not isinstance(reason, NotBlocked)


def encode_block_reason(reason: BlockReason) -> bytes:
    if isinstance(reason, (NotBlocked, HaltBlocked, ErrorBlocked, BreakpointBlocked)):
        return bytes([reason.block_type])
    if isinstance(reason, InboxBlocked):
        return bytes([reason.block_type]) + marshal_uint256(reason.inbox_index)
    if isinstance(reason, SendBlocked):
        return bytes([reason.block_type]) + marshal_uint256(reason.amount) + reason.token.raw
    raise PreconditionViolation(f"not a block reason: {reason!r}")


def _read_amount(block_type: BlockType, payload: bytes) -> int:
    try:
        return unmarshal_uint256(payload)
    except MalformedAmountData as exc:
        raise MalformedBlockReasonData(f"{block_type.name.lower()} payload: {exc}") from exc


def _read_inbox(data: bytes) -> InboxBlocked:
    return InboxBlocked(_read_amount(BlockType.INBOX, data[1 : 1 + ENCODED_LENGTH]))


def _read_send(data: bytes) -> SendBlocked:
    amount = _read_amount(BlockType.SEND, data[1 : 1 + ENCODED_LENGTH])
    token = TokenIdentity(data[1 + ENCODED_LENGTH : 1 + ENCODED_LENGTH + TOKEN_IDENTITY_LENGTH])
    return SendBlocked(amount, token)


_READERS: MappingProxyType[BlockType, Callable[[bytes], BlockReason]] = MappingProxyType(
    {
        BlockType.NOT: lambda _data: NotBlocked(),
        BlockType.HALT: lambda _data: HaltBlocked(),
        BlockType.ERROR: lambda _data: ErrorBlocked(),
        BlockType.BREAKPOINT: lambda _data: BreakpointBlocked(),
        BlockType.INBOX: _read_inbox,
        BlockType.SEND: _read_send,
    }
)


def decode_block_reason(data: bytes) -> BlockReason:
    data = bytes(data)
    if not data:
        raise TruncatedBlockReasonData(None, 1, 0)
    try:
        block_type = BlockType(data[0])
    except ValueError as exc:
        raise UnknownBlockReasonTag(data[0]) from exc

    expected = _WIRE_LENGTHS[block_type]
    if len(data) < expected:
        raise TruncatedBlockReasonData(int(block_type), expected, len(data))
    if len(data) > expected:
        raise MalformedBlockReasonData(
            f"{block_type.name.lower()} block reason is {expected} bytes, got {len(data)}"
        )
    return _READERS[block_type](data)
