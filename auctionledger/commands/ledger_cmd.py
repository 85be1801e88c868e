"""Raw invocation and audit log commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

from ..audit_log import format_audit_entry, read_audit_log
from ..errors import AuctionLedgerError
from ..harness import Harness, InvokeResult


def invoke_or_report(harness: Harness, operation: str, args: Any) -> InvokeResult | None:
    """Invoke an operation; on a ledger error print it and return None."""
    err = Console(stderr=True)
    try:
        return harness.invoke(operation, args)
    except AuctionLedgerError as e:
        err.print(f"{type(e).__name__}: {e}", style="bold red", markup=False, highlight=False)
        return None


def run_invoke(harness: Harness, operation: str, args_json: str) -> int:
    result = invoke_or_report(harness, operation, args_json)
    if result is None:
        return 1
    print(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    return 0


def run_log(state_dir: Path, *, last_n: int | None = None, output_json: bool = False) -> int:
    console = Console()
    entries = read_audit_log(state_dir, last_n=last_n)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2, sort_keys=True))
        return 0

    if not entries:
        console.print("No committed transactions.", style="dim")
        return 0

    for entry in entries:
        console.print(format_audit_entry(entry), markup=False, highlight=False)
    return 0
