from __future__ import annotations

import pytest

from avm_ledger.errors import MalformedLedgerData, UnknownBlockReasonTag
from avm_ledger.machine.accounting import MachineAccounting
from avm_ledger.machine.block_reason import HaltBlocked, InboxBlocked, NotBlocked, SendBlocked
from avm_ledger.machine.checkpoint import CheckpointStore
from avm_ledger.machine.logger import EventLogger
from avm_ledger.machine.message import Message
from avm_ledger.machine.token import FUNGIBLE_ZERO, TokenIdentity

NFT_CLASS = TokenIdentity(bytes([0x44] * 20 + [2]))


def _logger(tmp_path, run_id: str = "test_run") -> EventLogger:
    return EventLogger(logs_dir=str(tmp_path / "logs"), run_id=run_id)


def test_receive_then_send(tmp_path) -> None:
    logger = _logger(tmp_path)
    machine = MachineAccounting("m1", logger=logger)

    machine.receive(Message(None, 0, 100, FUNGIBLE_ZERO))
    assert machine.send(Message(None, 5, 40, FUNGIBLE_ZERO))
    assert machine.ledger.fungible_value(FUNGIBLE_ZERO) == 60
    assert machine.is_runnable

    event_types = [e["event_type"] for e in logger.read_recent(10)]
    assert event_types == ["message_received", "send_completed"]


def test_failed_send_blocks_machine(tmp_path) -> None:
    logger = _logger(tmp_path)
    machine = MachineAccounting("m1", logger=logger)
    machine.receive(Message(None, 0, 10, FUNGIBLE_ZERO))

    assert not machine.send(Message(None, 5, 11, FUNGIBLE_ZERO))
    assert machine.block_reason == SendBlocked(11, FUNGIBLE_ZERO)
    assert not machine.is_runnable
    assert machine.ledger.fungible_value(FUNGIBLE_ZERO) == 10

    events = logger.read_recent(10)
    assert events[-1]["event_type"] == "send_blocked"
    assert events[-2]["event_type"] == "block_reason_changed"
    assert events[-2]["current"] == {"type": "send", "amount": "11", "token": FUNGIBLE_ZERO.hex()}


def test_nft_send_moves_single_asset() -> None:
    machine = MachineAccounting("m1")
    machine.receive(Message(None, 0, 8, NFT_CLASS))
    assert machine.send(Message(None, 1, 8, NFT_CLASS))
    assert not machine.send(Message(None, 1, 8, NFT_CLASS))
    assert machine.block_reason == SendBlocked(8, NFT_CLASS)


def test_block_reason_transitions() -> None:
    machine = MachineAccounting("m1")
    machine.block_on_inbox(3)
    assert machine.block_reason == InboxBlocked(3)
    machine.resume()
    assert machine.block_reason == NotBlocked()
    machine.halt()
    assert machine.get_state_summary()["block_reason"] == {"type": "halt"}


def test_checkpoint_roundtrip(tmp_path) -> None:
    logger = _logger(tmp_path)
    store = CheckpointStore(tmp_path / "checkpoints", logger=logger)
    machine = MachineAccounting("m1")
    machine.receive(Message(None, 0, 123, FUNGIBLE_ZERO))
    machine.receive(Message(None, 0, 4, NFT_CLASS))
    machine.block_on_inbox(9)

    target = store.save(machine)
    assert (target / "balances.bin").read_bytes()[:4] == b"\x00\x00\x00\x01"
    assert len((target / "block_reason.bin").read_bytes()) == 34

    restored = store.load("m1")
    assert restored.ledger.fungible_balances() == {FUNGIBLE_ZERO: 123}
    assert restored.ledger.owned_assets() == frozenset()
    assert restored.block_reason == InboxBlocked(9)

    saved = [e for e in logger.read_recent(10) if e["event_type"] == "checkpoint_saved"]
    assert saved[0]["dropped_assets"] == 1


def test_corrupt_checkpoint_is_rejected_and_logged(tmp_path) -> None:
    logger = _logger(tmp_path)
    store = CheckpointStore(tmp_path / "checkpoints", logger=logger)
    machine = MachineAccounting("m1")
    machine.halt()
    target = store.save(machine)

    (target / "block_reason.bin").write_bytes(b"\x09")
    with pytest.raises(UnknownBlockReasonTag):
        store.load("m1")

    (target / "block_reason.bin").write_bytes(bytes([HaltBlocked.block_type]))
    (target / "balances.bin").write_bytes(b"\x00\x00\x00\x01")
    with pytest.raises(MalformedLedgerData):
        store.load("m1")

    rejected = [e for e in logger.read_recent(10) if e["event_type"] == "checkpoint_rejected"]
    assert [e["error_type"] for e in rejected] == ["UnknownBlockReasonTag", "MalformedLedgerData"]


def test_machine_id_cannot_escape_root(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    with pytest.raises(ValueError):
        store.machine_dir("../x")
    with pytest.raises(ValueError):
        store.machine_dir("")


def test_logger_links_latest_run(tmp_path) -> None:
    _logger(tmp_path, "first")
    second = _logger(tmp_path, "second")
    latest = tmp_path / "logs" / "latest"
    assert latest.is_symlink()
    assert latest.resolve() == second.run_dir.resolve()


def _stray_dirs(root) -> list[str]:
    return sorted(p.name for p in root.iterdir() if p.name.startswith("."))


def test_resave_replaces_both_files_together(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    machine = MachineAccounting("m1")
    machine.receive(Message(None, 0, 5, FUNGIBLE_ZERO))
    store.save(machine)

    machine.receive(Message(None, 0, 7, FUNGIBLE_ZERO))
    machine.block_on_inbox(4)
    store.save(machine)

    restored = store.load("m1")
    assert restored.ledger.fungible_value(FUNGIBLE_ZERO) == 12
    assert restored.block_reason == InboxBlocked(4)
    assert _stray_dirs(tmp_path) == []


def test_interrupted_swap_keeps_previous_pair(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    machine = MachineAccounting("m1")
    machine.receive(Message(None, 0, 5, FUNGIBLE_ZERO))
    machine.halt()
    target = store.save(machine)

    # Crash after the old pair was moved aside but before the new pair landed.
    target.rename(tmp_path / ".m1.previous")
    staging = tmp_path / ".m1.staging"
    staging.mkdir()
    (staging / "balances.bin").write_bytes(b"\x00\x00")

    assert store.exists("m1")
    restored = store.load("m1")
    assert restored.ledger.fungible_value(FUNGIBLE_ZERO) == 5
    assert restored.block_reason == HaltBlocked()

    store.save(restored)
    assert _stray_dirs(tmp_path) == []


def test_hidden_machine_ids_are_rejected(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    with pytest.raises(ValueError):
        store.machine_dir(".m1.staging")
