"""Read-only HTTP API over checkpoint directories and event logs."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI, Query

from .. import __version__
from ..errors import DecodeError
from ..machine.checkpoint import CheckpointStore
from ..machine.logger import read_jsonl_tail


def create_app(
    *,
    checkpoint_store: CheckpointStore | None = None,
    jsonl_path: str | None = None,
    event_limit: int = 500,
) -> FastAPI:
    """Create the inspection app; either source may be absent."""

    log_path = Path(jsonl_path) if jsonl_path else None

    app = FastAPI(title="AVM Ledger Dashboard", version=__version__)

    def _read(machine_id: str) -> dict[str, Any]:
        if checkpoint_store is None:
            return {"success": False, "error": "checkpoint store unavailable"}
        try:
            machine_dir = checkpoint_store.machine_dir(machine_id)
        except ValueError as exc:
            return {"success": False, "error": str(exc)}
        if not checkpoint_store.exists(machine_id):
            return {"success": False, "error": f"no checkpoint for machine '{machine_id}'"}
        try:
            ledger, reason = checkpoint_store.read(machine_dir)
        except (DecodeError, OSError) as exc:
            return {"success": False, "error": str(exc), "error_type": type(exc).__name__}
        return {"success": True, "ledger": ledger.to_dict(), "block_reason": reason.to_dict()}

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"ok": True}

    @app.get("/machines")
    async def machines() -> dict[str, Any]:
        if checkpoint_store is None or not checkpoint_store.root.exists():
            return {"success": True, "machines": []}
        names: set[str] = set()
        for path in checkpoint_store.root.iterdir():
            if not path.is_dir():
                continue
            if path.name.startswith(".") and path.name.endswith(".previous"):
                names.add(path.name[1 : -len(".previous")])
            elif not path.name.startswith("."):
                names.add(path.name)
        found = sorted(name for name in names if checkpoint_store.exists(name))
        return {"success": True, "machines": found}

    @app.get("/machines/{machine_id}/ledger")
    async def ledger(machine_id: str) -> dict[str, Any]:
        payload = _read(machine_id)
        if payload["success"]:
            payload.pop("block_reason")
        return payload

    @app.get("/machines/{machine_id}/block-reason")
    async def block_reason(machine_id: str) -> dict[str, Any]:
        payload = _read(machine_id)
        if payload["success"]:
            payload.pop("ledger")
        return payload

    @app.get("/events")
    async def events(limit: int | None = Query(default=None, ge=1)) -> dict[str, Any]:
        limit = event_limit if limit is None else min(limit, event_limit)
        items = read_jsonl_tail(log_path, limit) if log_path else []
        return {"success": True, "events": items, "count": len(items)}

    return app
