"""
Asset registry: read and write Asset records through a transaction context.

Functions take the call-scoped context explicitly and keep no state.
"""

from __future__ import annotations

import json

from .errors import NotFound, StoreError
from .keys import KEY_ASSETS, asset_key, namespace_prefix
from .models import Asset
from .store import TransactionContext


def _decode(key: str, raw: bytes) -> Asset:
    try:
        return Asset.from_json(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError) as e:
        raise StoreError(f"Corrupt asset record at {key!r}: {e}") from e


def asset_exists(ctx: TransactionContext, asset_id: str) -> bool:
    return ctx.get_state(asset_key(asset_id)) is not None


def get_asset(ctx: TransactionContext, asset_id: str) -> Asset:
    key = asset_key(asset_id)
    raw = ctx.get_state(key)
    if raw is None:
        raise NotFound(f"asset not found: {asset_id}")
    return _decode(key, raw)


def put_asset(ctx: TransactionContext, asset: Asset) -> None:
    ctx.put_state(asset_key(asset.id), asset.to_json().encode("utf-8"))


def new_asset(ctx: TransactionContext, asset_id: str, owner: str) -> Asset:
    """Build and persist a fresh asset with no pending auction."""
    asset = Asset(id=asset_id, owner=owner, pending_auction_id=None)
    put_asset(ctx, asset)
    return asset


def list_assets(ctx: TransactionContext) -> list[Asset]:
    prefix = namespace_prefix(KEY_ASSETS)
    assets = []
    for key in ctx.keys(prefix):
        raw = ctx.get_state(key)
        if raw is not None:
            assets.append(_decode(key, raw))
    return assets
