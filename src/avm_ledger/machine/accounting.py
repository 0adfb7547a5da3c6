"""Per-machine token accounting: ledger, block reason and event logging."""

from __future__ import annotations

from typing import Any

from .block_reason import (
    BlockReason,
    BreakpointBlocked,
    ErrorBlocked,
    HaltBlocked,
    InboxBlocked,
    NotBlocked,
    SendBlocked,
    is_blocked,
)
from .ledger import BalanceLedger
from .logger import EventLogger
from .message import Message


class MachineAccounting:
    """Owns one machine's ledger and its current block reason.

    The interpreter drives this object from a single execution context.
    """

    def __init__(
        self,
        machine_id: str,
        *,
        ledger: BalanceLedger | None = None,
        block_reason: BlockReason | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self.machine_id = machine_id
        self.ledger = ledger if ledger is not None else BalanceLedger()
        self._block_reason: BlockReason = block_reason if block_reason is not None else NotBlocked()
        self.logger = logger

    def _log(self, event_type: str, data: dict[str, Any]) -> None:
        if self.logger is not None:
            self.logger.log(event_type, {"machine_id": self.machine_id, **data})

    @property
    def block_reason(self) -> BlockReason:
        return self._block_reason

    @property
    def is_runnable(self) -> bool:
        return not is_blocked(self._block_reason)

    def set_block_reason(self, reason: BlockReason) -> None:
        previous = self._block_reason
        self._block_reason = reason
        if previous != reason:
            self._log(
                "block_reason_changed",
                {"previous": previous.to_dict(), "current": reason.to_dict()},
            )

    def resume(self) -> None:
        self.set_block_reason(NotBlocked())

    def halt(self) -> None:
        self.set_block_reason(HaltBlocked())

    def error(self) -> None:
        self.set_block_reason(ErrorBlocked())

    def breakpoint(self) -> None:
        self.set_block_reason(BreakpointBlocked())

    def block_on_inbox(self, inbox_index: int) -> None:
        self.set_block_reason(InboxBlocked(inbox_index))

    def receive(self, message: Message) -> None:
        """Credit the value carried by an inbound message."""
        self.ledger.add(message.token, message.currency)
        self._log(
            "message_received",
            {"token": message.token.hex(), "currency": str(message.currency), "destination": str(message.destination)},
        )

    def send(self, message: Message) -> bool:
        """Debit an outbound message's value, or block the machine on it."""
        if not self.ledger.spend(message.token, message.currency):
            self.set_block_reason(SendBlocked(message.currency, message.token))
            self._log("send_blocked", {"token": message.token.hex(), "currency": str(message.currency)})
            return False
        self._log(
            "send_completed",
            {"token": message.token.hex(), "currency": str(message.currency), "destination": str(message.destination)},
        )
        return True

    def get_state_summary(self) -> dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "runnable": self.is_runnable,
            "block_reason": self._block_reason.to_dict(),
            "ledger": self.ledger.to_dict(),
        }
