"""
Auction registry: Auction records and the global auction-id counter.

The counter holds the last id handed out; it is absent (0) until the first
auction is created and is only ever incremented.
"""

from __future__ import annotations

import json

from .errors import NotFound, StoreError
from .keys import KEY_AUCTIONS, KEY_LAST_AUCTION_ID, auction_key, namespace_prefix
from .models import Auction
from .store import TransactionContext


def _decode(key: str, raw: bytes) -> Auction:
    try:
        return Auction.from_json(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt auction record at {key!r}: {e}") from e


def get_last_auction_id(ctx: TransactionContext) -> int:
    raw = ctx.get_state(KEY_LAST_AUCTION_ID)
    if raw is None:
        return 0
    try:
        return int(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise StoreError(f"Corrupt auction counter: {raw!r}") from e


def set_last_auction_id(ctx: TransactionContext, auction_id: int) -> None:
    ctx.put_state(KEY_LAST_AUCTION_ID, str(int(auction_id)).encode("utf-8"))


def get_auction(ctx: TransactionContext, auction_id: int) -> Auction:
    key = auction_key(auction_id)
    raw = ctx.get_state(key)
    if raw is None:
        raise NotFound(f"auction not found: {auction_id}")
    return _decode(key, raw)


def put_auction(ctx: TransactionContext, auction: Auction) -> None:
    ctx.put_state(auction_key(auction.id), auction.to_json().encode("utf-8"))


def list_auctions(ctx: TransactionContext) -> list[Auction]:
    """All auctions, ordered by id."""
    prefix = namespace_prefix(KEY_AUCTIONS)
    auctions = []
    for key in ctx.keys(prefix):
        raw = ctx.get_state(key)
        if raw is not None:
            auctions.append(_decode(key, raw))
    return sorted(auctions, key=lambda a: a.id)
