"""Machine accounting package exports."""

from .accounting import MachineAccounting
from .block_reason import (
    BlockReason,
    BlockType,
    BreakpointBlocked,
    ErrorBlocked,
    HaltBlocked,
    InboxBlocked,
    NotBlocked,
    SendBlocked,
    block_reason_length,
    decode_block_reason,
    encode_block_reason,
)
from .checkpoint import CheckpointStore
from .ledger import BalanceLedger
from .ledger_codec import decode_ledger, encode_ledger
from .message import Message
from .token import FUNGIBLE_ZERO, AssetKey, TokenIdentity

__all__ = [
    "AssetKey",
    "BalanceLedger",
    "BlockReason",
    "BlockType",
    "BreakpointBlocked",
    "CheckpointStore",
    "ErrorBlocked",
    "FUNGIBLE_ZERO",
    "HaltBlocked",
    "InboxBlocked",
    "MachineAccounting",
    "Message",
    "NotBlocked",
    "SendBlocked",
    "TokenIdentity",
    "block_reason_length",
    "decode_block_reason",
    "decode_ledger",
    "encode_block_reason",
    "encode_ledger",
]
