"""Asset CLI commands."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from ..harness import Harness
from .ledger_cmd import invoke_or_report


def run_asset_add(harness: Harness, asset_id: str, owner: str) -> int:
    err = Console(stderr=True)
    result = invoke_or_report(harness, "asset.add", {"asset_id": asset_id, "owner": owner})
    if result is None:
        return 1
    err.print(f"added: {asset_id} (owner {owner})", style="green", markup=False)
    return 0


def run_asset_show(harness: Harness, asset_id: str, *, output_json: bool = False) -> int:
    result = invoke_or_report(harness, "asset.get", {"asset_id": asset_id})
    if result is None:
        return 1

    asset = result.result
    if output_json:
        print(json.dumps(asset, indent=2, sort_keys=True))
        return 0

    console = Console()
    pending = asset["pending_auction_id"]
    console.print(f"asset: {asset['id']}", markup=False, highlight=False)
    console.print(f"owner: {asset['owner']}", markup=False, highlight=False)
    console.print(f"pending auction: {pending if pending is not None else 'none'}", markup=False, highlight=False)
    return 0


def run_asset_list(harness: Harness) -> int:
    result = invoke_or_report(harness, "asset.list", {})
    if result is None:
        return 1

    table = Table(title="Assets")
    table.add_column("asset_id", style="cyan", no_wrap=True)
    table.add_column("owner", style="magenta")
    table.add_column("pending auction")

    for asset in result.result:
        pending = asset["pending_auction_id"]
        table.add_row(asset["id"], asset["owner"], str(pending) if pending is not None else "")

    Console().print(table)
    return 0
