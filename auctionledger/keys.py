"""
Storage key namespacing.

Entity keys are `<namespace>_<id>`. Auction ids are integers, so the only
namespace with a free-form alphabet is `assets`; the counter key lives outside
both prefixes.
"""

from __future__ import annotations

KEY_ASSETS = "assets"
KEY_AUCTIONS = "auctions"
KEY_LAST_AUCTION_ID = "counter:last_auction_id"

SEPARATOR = "_"


def make_key(namespace: str, entity_id: str | int) -> str:
    return f"{namespace}{SEPARATOR}{entity_id}"


def asset_key(asset_id: str) -> str:
    return make_key(KEY_ASSETS, asset_id)


def auction_key(auction_id: int) -> str:
    return make_key(KEY_AUCTIONS, int(auction_id))


def namespace_prefix(namespace: str) -> str:
    """Prefix shared by every key in `namespace` (for store scans)."""
    return f"{namespace}{SEPARATOR}"
