"""Auction CLI commands."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from ..harness import Harness
from .ledger_cmd import invoke_or_report


def parse_bid(text: str) -> tuple[str, int]:
    """Parse BIDDER:AMOUNT. The bidder may itself contain colons."""
    bidder, sep, amount = text.rpartition(":")
    if not sep:
        raise ValueError(f"Bid must look like BIDDER:AMOUNT, got {text!r}")
    try:
        return bidder, int(amount)
    except ValueError:
        raise ValueError(f"Bid amount must be an integer, got {amount!r}") from None


def _print_auction(auction: dict[str, Any]) -> None:
    console = Console()
    console.print(f"auction {auction['id']}: {auction['status']} (asset {auction['asset_id']})", markup=False, highlight=False)
    for platform, cross_id in zip(auction["platforms"], auction["cross_auction_ids"]):
        console.print(f"  {platform}: {cross_id or '-'}", style="dim", markup=False, highlight=False)
    if auction["highest_bidder"]:
        console.print(
            f"  winner: {auction['highest_bidder']} bid {auction['highest_bid']} on {auction['highest_bid_platform']}",
            markup=False,
            highlight=False,
        )


def run_auction_start(harness: Harness, asset_id: str, platforms: list[str]) -> int:
    err = Console(stderr=True)
    result = invoke_or_report(harness, "auction.start", {"asset_id": asset_id, "platforms": list(platforms)})
    if result is None:
        return 1
    err.print(f"started: auction {result.result['auction_id']} for {asset_id}", style="green", markup=False)
    print(result.result["auction_id"])
    return 0


def run_auction_bind(harness: Harness, auction_id: int, cross_auction_ids: list[str]) -> int:
    result = invoke_or_report(
        harness, "auction.bind", {"auction_id": auction_id, "cross_auction_ids": list(cross_auction_ids)}
    )
    if result is None:
        return 1
    _print_auction(result.result)
    return 0


def run_auction_ending(harness: Harness, asset_id: str) -> int:
    result = invoke_or_report(harness, "auction.mark_ending", {"asset_id": asset_id})
    if result is None:
        return 1
    _print_auction(result.result)
    return 0


def run_auction_end(harness: Harness, auction_id: int, bids: list[str]) -> int:
    err = Console(stderr=True)
    try:
        parsed = [parse_bid(b) for b in bids]
    except ValueError as e:
        err.print(str(e), style="bold red", markup=False)
        return 1

    result = invoke_or_report(
        harness,
        "auction.end",
        {
            "auction_id": auction_id,
            "highest_bids": [amount for _, amount in parsed],
            "highest_bidders": [bidder for bidder, _ in parsed],
        },
    )
    if result is None:
        return 1
    _print_auction(result.result)
    if not result.result["highest_bidder"]:
        err.print("no winning bid; owner unchanged", style="yellow")
    return 0


def run_auction_show(harness: Harness, auction_id: int, *, output_json: bool = False) -> int:
    result = invoke_or_report(harness, "auction.get", {"auction_id": auction_id})
    if result is None:
        return 1
    if output_json:
        print(json.dumps(result.result, indent=2, sort_keys=True))
    else:
        _print_auction(result.result)
    return 0


def run_auction_list(harness: Harness, *, status: str | None = None) -> int:
    result = invoke_or_report(harness, "auction.list", {})
    if result is None:
        return 1

    auctions = result.result
    if status:
        auctions = [a for a in auctions if a["status"].lower() == status.lower()]

    table = Table(title="Auctions")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("asset", style="magenta")
    table.add_column("status")
    table.add_column("platforms")
    table.add_column("winner")

    for a in auctions:
        winner = f"{a['highest_bidder']} ({a['highest_bid']})" if a["highest_bidder"] else ""
        table.add_row(str(a["id"]), a["asset_id"], a["status"], ", ".join(a["platforms"]), winner)

    Console().print(table)
    return 0
