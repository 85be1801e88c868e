"""
Persisted record types for assets and auctions.

Records are call-scoped snapshots: they are decoded from the store at the
start of an operation, mutated in memory, and written back whole. Nothing
holds on to a record between calls.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import DecodeError


class AuctionStatus(str, Enum):
    STARTED = "Started"
    BIND = "Bind"
    ENDING = "Ending"
    ENDED = "Ended"


def _dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


@dataclass
class Asset:
    """An owned item. `pending_auction_id` is None unless an auction is in progress."""

    id: str
    owner: str
    pending_auction_id: int | None = None

    def has_pending_auction(self) -> bool:
        return self.pending_auction_id is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "id": self.id,
            "owner": self.owner,
            "pending_auction_id": self.pending_auction_id,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        """Reconstruct from JSON dict."""
        pending = data.get("pending_auction_id")
        return cls(
            id=str(data["id"]),
            owner=str(data["owner"]),
            # 0 is the "none" sentinel used by older records
            pending_auction_id=int(pending) if pending else None,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> Asset:
        return cls.from_dict(json.loads(raw))


@dataclass
class Auction:
    """
    One auction of one asset across an ordered list of platforms.

    `cross_auction_ids[i]` is this auction's id on `platforms[i]`; the two
    lists always have the same length. The highest_* fields stay zero/empty
    until the auction is ended.
    """

    id: int
    asset_id: str
    platforms: list[str] = field(default_factory=list)
    cross_auction_ids: list[str] = field(default_factory=list)
    status: AuctionStatus = AuctionStatus.STARTED
    highest_bid: int = 0
    highest_bidder: str = ""
    highest_bid_platform: str = ""

    def has_winner(self) -> bool:
        return bool(self.highest_bidder)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "platforms": list(self.platforms),
            "cross_auction_ids": list(self.cross_auction_ids),
            "status": self.status.value,
            "highest_bid": self.highest_bid,
            "highest_bidder": self.highest_bidder,
            "highest_bid_platform": self.highest_bid_platform,
        }

    def to_json(self) -> str:
        return _dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Auction:
        """Reconstruct from JSON dict."""
        return cls(
            id=int(data["id"]),
            asset_id=str(data["asset_id"]),
            platforms=[str(p) for p in data.get("platforms", [])],
            cross_auction_ids=[str(c) for c in data.get("cross_auction_ids", [])],
            status=AuctionStatus(data.get("status", AuctionStatus.STARTED.value)),
            highest_bid=int(data.get("highest_bid", 0)),
            highest_bidder=str(data.get("highest_bidder", "")),
            highest_bid_platform=str(data.get("highest_bid_platform", "")),
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> Auction:
        return cls.from_dict(json.loads(raw))


# -----------------------------------------------------------------------------
# Binary identifiers
# -----------------------------------------------------------------------------

# Stored form of a binary id. Text ids may not start with it, so the two never collide.
BINARY_ID_PREFIX = "hex:"


def encode_binary_id(raw: bytes) -> str:
    """Encode a binary identifier for transport (standard base64)."""
    return base64.b64encode(raw).decode("ascii")


def decode_binary_id(text: str) -> bytes:
    """Decode a transported binary identifier; rejects non-canonical base64."""
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise DecodeError(f"Invalid base64 identifier: {text!r}") from e
    if not raw:
        raise DecodeError("Binary identifier is empty")
    return raw


def binary_id_text(raw: bytes) -> str:
    """Canonical text form of a binary identifier, used as the stored id."""
    return BINARY_ID_PREFIX + raw.hex()
