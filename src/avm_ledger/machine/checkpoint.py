"""Save and restore machine accounting state as flat binary files."""

from __future__ import annotations

import shutil
from pathlib import Path

from ..config import CheckpointConfig
from ..errors import DecodeError
from .accounting import MachineAccounting
from .block_reason import BlockReason, decode_block_reason, encode_block_reason
from .ledger import BalanceLedger
from .ledger_codec import decode_ledger, encode_ledger
from .logger import EventLogger


class CheckpointStore:
    """One directory per machine holding a ledger buffer and a block-reason buffer.

    A save stages both files in `.<machine_id>.staging` and swaps that
    directory into place, so a reader never sees buffers from two different
    saves. If a crash lands between the two renames, the previous pair is
    left in `.<machine_id>.previous` and is restored on the next access.

    Only fungible balances survive a round trip; see `ledger_codec`.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        balances_file_name: str = "balances.bin",
        block_reason_file_name: str = "block_reason.bin",
        logger: EventLogger | None = None,
    ) -> None:
        self.root = Path(root)
        self.balances_file_name = balances_file_name
        self.block_reason_file_name = block_reason_file_name
        self.logger = logger

    @classmethod
    def from_config(
        cls,
        config: CheckpointConfig,
        logger: EventLogger | None = None,
        *,
        root: str | Path | None = None,
    ) -> "CheckpointStore":
        return cls(
            root if root is not None else config.directory,
            balances_file_name=config.balances_file_name,
            block_reason_file_name=config.block_reason_file_name,
            logger=logger,
        )

    def machine_dir(self, machine_id: str) -> Path:
        if not machine_id or "/" in machine_id or machine_id.startswith("."):
            raise ValueError(f"invalid machine id: {machine_id!r}")
        return self.root / machine_id

    def _staging_dir(self, machine_id: str) -> Path:
        return self.root / f".{machine_id}.staging"

    def _previous_dir(self, machine_id: str) -> Path:
        return self.root / f".{machine_id}.previous"

    def _restore_interrupted_swap(self, machine_id: str) -> None:
        target = self.machine_dir(machine_id)
        previous = self._previous_dir(machine_id)
        if previous.exists() and not target.exists():
            previous.rename(target)

    def exists(self, machine_id: str) -> bool:
        self._restore_interrupted_swap(machine_id)
        return (self.machine_dir(machine_id) / self.balances_file_name).exists()

    def save(self, accounting: MachineAccounting) -> Path:
        target = self.machine_dir(accounting.machine_id)
        staging = self._staging_dir(accounting.machine_id)
        previous = self._previous_dir(accounting.machine_id)
        ledger_bytes = encode_ledger(accounting.ledger)
        reason_bytes = encode_block_reason(accounting.block_reason)

        self._restore_interrupted_swap(accounting.machine_id)
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)
        (staging / self.balances_file_name).write_bytes(ledger_bytes)
        (staging / self.block_reason_file_name).write_bytes(reason_bytes)

        if previous.exists():
            shutil.rmtree(previous)
        if target.exists():
            target.rename(previous)
        staging.rename(target)
        if previous.exists():
            shutil.rmtree(previous)

        if self.logger is not None:
            self.logger.log(
                "checkpoint_saved",
                {
                    "machine_id": accounting.machine_id,
                    "path": str(target),
                    "ledger_bytes": len(ledger_bytes),
                    "block_reason": accounting.block_reason.to_dict(),
                    "dropped_assets": len(accounting.ledger.assets),
                },
            )
        return target

    def read(self, machine_dir: str | Path) -> tuple[BalanceLedger, BlockReason]:
        machine_dir = Path(machine_dir)
        try:
            ledger = decode_ledger((machine_dir / self.balances_file_name).read_bytes())
            reason = decode_block_reason((machine_dir / self.block_reason_file_name).read_bytes())
        except DecodeError as exc:
            if self.logger is not None:
                self.logger.log(
                    "checkpoint_rejected",
                    {"path": str(machine_dir), "error_type": type(exc).__name__, "error": str(exc)},
                )
            raise
        return ledger, reason

    def load(self, machine_id: str, *, logger: EventLogger | None = None) -> MachineAccounting:
        self._restore_interrupted_swap(machine_id)
        ledger, reason = self.read(self.machine_dir(machine_id))
        if self.logger is not None:
            self.logger.log(
                "checkpoint_loaded",
                {"machine_id": machine_id, "entries": len(ledger.balances), "block_reason": reason.to_dict()},
            )
        return MachineAccounting(machine_id, ledger=ledger, block_reason=reason, logger=logger or self.logger)
