"""avm-ledger command-line entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import AppConfig, load_config
from .errors import DecodeError
from .machine.block_reason import decode_block_reason
from .machine.checkpoint import CheckpointStore
from .machine.ledger_codec import decode_ledger
from .machine.logger import EventLogger


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect AVM ledger and block-reason checkpoints")
    parser.add_argument("--config", default="config/config.yaml", help="Path to config YAML")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser("inspect", help="Decode a machine checkpoint directory")
    inspect.add_argument("machine_dir", help="Directory holding the balances and block-reason files")

    ledger = sub.add_parser("decode-ledger", help="Decode one ledger buffer")
    ledger.add_argument("path")

    reason = sub.add_parser("decode-block-reason", help="Decode one block-reason buffer")
    reason.add_argument("path")

    serve = sub.add_parser("serve", help="Run the inspection dashboard")
    serve.add_argument("--host", default=None, help="Dashboard host override")
    serve.add_argument("--port", type=int, default=None, help="Dashboard port override")
    serve.add_argument("--checkpoint-dir", default=None, help="Checkpoint root override")
    return parser.parse_args(argv)


def _load_runtime_config(path: str) -> AppConfig:
    if not Path(path).exists():
        return AppConfig()
    return load_config(path)


def _make_logger(config: AppConfig) -> EventLogger:
    run_id = datetime.now(timezone.utc).strftime("run_%Y%m%d_%H%M%S") + f"_{uuid.uuid4().hex[:6]}"
    return EventLogger(
        logs_dir=config.logging.logs_dir,
        run_id=run_id,
        event_file_name=config.logging.event_file_name,
    )


def _print_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _serve(config: AppConfig, host: str | None, port: int | None, checkpoint_dir: str | None) -> None:
    import uvicorn

    from .dashboard import create_app

    store = CheckpointStore.from_config(config.checkpoint, _make_logger(config), root=checkpoint_dir)
    app = create_app(
        checkpoint_store=store,
        jsonl_path=config.dashboard.jsonl_file,
        event_limit=config.logging.recent_event_limit,
    )
    uvicorn.run(
        app,
        host=host or config.dashboard.host,
        port=port or config.dashboard.port,
        log_level="warning",
    )


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _parse_args(argv)
    config = _load_runtime_config(args.config)

    if args.command == "serve":
        _serve(config, args.host, args.port, args.checkpoint_dir)
        return 0

    try:
        if args.command == "inspect":
            store = CheckpointStore.from_config(config.checkpoint, _make_logger(config))
            ledger, reason = store.read(args.machine_dir)
            _print_json({"ledger": ledger.to_dict(), "block_reason": reason.to_dict()})
        elif args.command == "decode-ledger":
            _print_json(decode_ledger(Path(args.path).read_bytes()).to_dict())
        elif args.command == "decode-block-reason":
            _print_json(decode_block_reason(Path(args.path).read_bytes()).to_dict())
    except DecodeError as exc:
        print(f"error: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
