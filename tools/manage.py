#!/usr/bin/env python3
"""
AgriLedger Management CLI

Commands for operating the ledger:
- run-script: Replay a JSON operation script against a fresh ledger
- limits: Print the field validation bounds
- health-check: Run health checks on a fresh ledger

A script is a JSON list of steps:

    [
      {"op": "create", "caller": "farmer-a", "height": 10,
       "args": {"product": "Wheat", "volume": 500, "notes": "Field A",
                "labels": ["organic"]}},
      {"op": "transfer-ownership", "caller": "farmer-a", "height": 11,
       "args": {"record_index": 1, "new_producer": "farmer-b"}}
    ]

Usage:
    python -m tools.manage <command> [options]

Examples:
    python -m tools.manage run-script harvest.json --dump
    python -m tools.manage limits
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from agriledger.config import LedgerConfig
from agriledger.core import LedgerError, LedgerService
from agriledger.core.validator import limits
from agriledger.observability import check_health, get_logger
from agriledger.schemas import CallContext, LedgerState

logger = get_logger(__name__)


# Script op name -> LedgerService method
OPERATIONS = {
    "create": "create_production_record",
    "modify": "modify_production_record",
    "append-labels": "append_metadata_labels",
    "delete": "delete_production_record",
    "transfer-ownership": "transfer_record_ownership",
    "revoke-access": "revoke_viewing_access",
    "verify-authenticity": "verify_production_authenticity",
    "security-lock": "apply_security_lock",
}


def _to_jsonable(value):
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, tuple):
        return list(value)
    return value


def run_step(ledger: LedgerService, step: dict) -> dict:
    """
    Execute one script step.

    Ledger errors are reported in the result, not raised: a script
    keeps going after a rejected operation the same way a host would.
    Malformed steps raise ValueError.
    """
    op = step.get("op")
    if op not in OPERATIONS:
        raise ValueError(f"Unknown op {op!r}. Valid ops: {', '.join(OPERATIONS)}")

    ctx = CallContext(caller=step["caller"], height=step.get("height", 0))
    method = getattr(ledger, OPERATIONS[op])

    try:
        result = method(ctx, **step.get("args", {}))
    except LedgerError as e:
        return {"op": op, "ok": False, "kind": e.kind.value, "error": str(e)}

    return {"op": op, "ok": True, "result": _to_jsonable(result)}


def run_script(ledger: LedgerService, steps: list) -> list[dict]:
    """Execute every step in order and collect the results."""
    return [run_step(ledger, step) for step in steps]


def export_state(ledger: LedgerService) -> LedgerState:
    """Capture both tables and the counter."""
    return LedgerState(
        records=ledger.record_store.dump(),
        grants=ledger.access_store.dump(),
        last_record_index=ledger.sequencer.current,
    )


def cmd_run_script(args):
    """Replay an operation script against a fresh ledger."""
    path = Path(args.script)
    if not path.exists():
        print(f"Script not found: {path}", file=sys.stderr)
        return 1

    with open(path) as f:
        steps = json.load(f)

    if not isinstance(steps, list):
        print("Script must be a JSON list of steps", file=sys.stderr)
        return 1

    ledger = args.config.build_ledger()
    logger.info("Replaying script", script=str(path), steps=len(steps))

    try:
        results = run_script(ledger, steps)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Malformed script: {e}", file=sys.stderr)
        return 1

    for result in results:
        print(json.dumps(result))

    if args.dump:
        print(export_state(ledger).model_dump_json(indent=2))

    return 0


def cmd_limits(args):
    """Print validation bounds."""
    print(json.dumps(limits(), indent=2))
    return 0


def cmd_health_check(args):
    """Run health checks on a freshly configured ledger."""
    print("=== AgriLedger Health Check ===\n")

    config = args.config
    print(f"  System owner: {config.system_owner}")
    print(f"  Store driver: {config.store_driver.value}")

    status = check_health(config.build_ledger())
    for name, check in status.checks.items():
        marker = "OK" if check.get("status") == "healthy" else "FAIL"
        print(f"  {name}: [{marker}]")

    print("\n=== Health Check Complete ===")
    return 0 if status.healthy else 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="AgriLedger Management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # run-script
    p_run = subparsers.add_parser(
        "run-script",
        help="Replay a JSON operation script against a fresh ledger"
    )
    p_run.add_argument("script", help="Path to the JSON script")
    p_run.add_argument("--dump", action="store_true", help="Print final ledger state")

    # limits
    subparsers.add_parser(
        "limits",
        help="Print field validation bounds"
    )

    # health-check
    subparsers.add_parser(
        "health-check",
        help="Run health checks"
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = LedgerConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    args.config = config

    # Results go to stdout; keep logs out of them
    config.configure_logging(sys.stderr)

    commands = {
        "run-script": cmd_run_script,
        "limits": cmd_limits,
        "health-check": cmd_health_check,
    }

    return commands[args.command](args) or 0


if __name__ == "__main__":
    sys.exit(main())
