"""
Auction lifecycle controller.

Lifecycle:
    Started → Bind → Ending → Ended
    Started → Ending (mark ending before binding)
    any non-terminal → Ended (end auction)

Ended is terminal; an ended auction is never written again. Every operation
reads what it needs through the registries, validates, mutates its own
call-scoped copies, and writes them back through the same context. The
contract object itself holds only an immutable policy, so one instance can
serve any number of concurrent, unrelated calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from . import assets as asset_registry
from . import auctions as auction_registry
from .errors import NotFound, ValidationError
from .models import Asset, Auction, AuctionStatus
from .store import TransactionContext

logger = logging.getLogger(__name__)


# Valid transitions: {from_status: {allowed_to_statuses}}
TRANSITIONS: dict[AuctionStatus, frozenset[AuctionStatus]] = {
    AuctionStatus.STARTED: frozenset({AuctionStatus.BIND, AuctionStatus.ENDING, AuctionStatus.ENDED}),
    AuctionStatus.BIND: frozenset({AuctionStatus.ENDING, AuctionStatus.ENDED}),
    AuctionStatus.ENDING: frozenset({AuctionStatus.ENDED}),
    AuctionStatus.ENDED: frozenset(),
}


def check_transition(auction: Auction, target: AuctionStatus) -> None:
    """Raise ValidationError unless `auction` may move to `target`."""
    allowed = TRANSITIONS.get(auction.status, frozenset())
    if target not in allowed:
        allowed_str = ", ".join(s.value for s in sorted(allowed, key=lambda s: s.value)) or "none"
        raise ValidationError(
            f"invalid transition for auction {auction.id}: "
            f"{auction.status.value} -> {target.value} (allowed: {allowed_str})"
        )


def select_winner(
    platforms: Sequence[str],
    highest_bids: Sequence[int],
    highest_bidders: Sequence[str],
) -> tuple[int, str, str]:
    """
    Pick the winning (bid, bidder, platform) across platforms.

    Positions are scanned in platform order and a position only takes over
    when its bid is strictly greater than the running best, so on a tie the
    earliest platform wins. The running best starts at 0; if no bid beats it
    the result is (0, "", "").
    """
    best_bid, best_bidder, best_platform = 0, "", ""
    for platform, bid, bidder in zip(platforms, highest_bids, highest_bidders):
        if bid > best_bid:
            best_bid, best_bidder, best_platform = bid, bidder, platform
    return best_bid, best_bidder, best_platform


@dataclass(frozen=True)
class ContractPolicy:
    allow_asset_overwrite: bool = False


class AuctionContract:
    """
    The five lifecycle operations plus the two reads.

    Every method takes the call's TransactionContext as its first argument;
    nothing about a call is ever stored on the instance.
    """

    __slots__ = ("policy",)

    def __init__(self, policy: ContractPolicy | None = None):
        self.policy = policy or ContractPolicy()

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    def add_asset(self, ctx: TransactionContext, asset_id: str, owner: str) -> Asset:
        if not self.policy.allow_asset_overwrite and asset_registry.asset_exists(ctx, asset_id):
            raise ValidationError(f"asset exists: {asset_id}")
        asset = asset_registry.new_asset(ctx, asset_id, owner)
        logger.info("asset %s added (owner=%s)", asset_id, owner)
        return asset

    def get_asset(self, ctx: TransactionContext, asset_id: str) -> Asset:
        return asset_registry.get_asset(ctx, asset_id)

    def list_assets(self, ctx: TransactionContext) -> list[Asset]:
        return asset_registry.list_assets(ctx)

    # -------------------------------------------------------------------------
    # Auctions
    # -------------------------------------------------------------------------

    def get_auction(self, ctx: TransactionContext, auction_id: int) -> Auction:
        return auction_registry.get_auction(ctx, auction_id)

    def list_auctions(self, ctx: TransactionContext) -> list[Auction]:
        return auction_registry.list_auctions(ctx)

    def start_auction(self, ctx: TransactionContext, asset_id: str, platforms: Sequence[str]) -> int:
        """
        Open a new auction for an asset. Returns the new auction id.

        Writes the auction, the counter, and the asset; the caller commits
        all three together or not at all.
        """
        asset = asset_registry.get_asset(ctx, asset_id)
        if asset.has_pending_auction():
            raise ValidationError(
                f"pending auction exists: asset {asset_id} has auction {asset.pending_auction_id}"
            )
        if not platforms:
            raise ValidationError("auction needs at least one platform")

        auction_id = auction_registry.get_last_auction_id(ctx) + 1
        auction = Auction(
            id=auction_id,
            asset_id=asset_id,
            platforms=list(platforms),
            cross_auction_ids=[""] * len(platforms),
            status=AuctionStatus.STARTED,
        )

        auction_registry.put_auction(ctx, auction)
        auction_registry.set_last_auction_id(ctx, auction_id)
        asset.pending_auction_id = auction_id
        asset_registry.put_asset(ctx, asset)

        logger.info("auction %d started for asset %s on %s", auction_id, asset_id, list(platforms))
        return auction_id

    def bind_auction(
        self,
        ctx: TransactionContext,
        auction_id: int,
        cross_auction_ids: Sequence[str],
    ) -> Auction:
        auction = auction_registry.get_auction(ctx, auction_id)
        if len(cross_auction_ids) != len(auction.platforms):
            raise ValidationError(
                f"auction {auction_id} has {len(auction.platforms)} platform(s), "
                f"got {len(cross_auction_ids)} cross-auction id(s)"
            )
        check_transition(auction, AuctionStatus.BIND)

        auction.status = AuctionStatus.BIND
        auction.cross_auction_ids = list(cross_auction_ids)
        auction_registry.put_auction(ctx, auction)

        logger.info("auction %d bound: %s", auction_id, dict(zip(auction.platforms, auction.cross_auction_ids)))
        return auction

    def mark_auction_ending(self, ctx: TransactionContext, asset_id: str) -> Auction:
        asset = asset_registry.get_asset(ctx, asset_id)
        if asset.pending_auction_id is None:
            raise NotFound(f"no pending auction for asset {asset_id}")
        auction = auction_registry.get_auction(ctx, asset.pending_auction_id)
        check_transition(auction, AuctionStatus.ENDING)

        auction.status = AuctionStatus.ENDING
        auction_registry.put_auction(ctx, auction)

        logger.info("auction %d ending (asset %s)", auction.id, asset_id)
        return auction

    def end_auction(
        self,
        ctx: TransactionContext,
        auction_id: int,
        highest_bids: Sequence[int],
        highest_bidders: Sequence[str],
    ) -> Auction:
        """
        Resolve the winner and transfer the asset.

        highest_bids[i] and highest_bidders[i] are the best bid seen on
        platforms[i]. The auction becomes Ended and the asset's pending
        reference is cleared in the same call; when there is a winner the
        asset's owner becomes the winning bidder.

        When no bid is above 0 the owner is left unchanged; it is never
        overwritten with the empty bidder "".
        """
        auction = auction_registry.get_auction(ctx, auction_id)
        expected = len(auction.platforms)
        if len(highest_bids) != expected or len(highest_bidders) != expected:
            raise ValidationError(
                f"auction {auction_id} has {expected} platform(s), got "
                f"{len(highest_bids)} bid(s) and {len(highest_bidders)} bidder(s)"
            )
        check_transition(auction, AuctionStatus.ENDED)

        asset = asset_registry.get_asset(ctx, auction.asset_id)
        if asset.pending_auction_id != auction.id:
            raise ValidationError(
                f"invalid auction result: asset {asset.id} is pending on "
                f"{asset.pending_auction_id}, not auction {auction.id}"
            )

        bid, bidder, platform = select_winner(auction.platforms, highest_bids, highest_bidders)
        auction.highest_bid = bid
        auction.highest_bidder = bidder
        auction.highest_bid_platform = platform
        auction.status = AuctionStatus.ENDED
        auction_registry.put_auction(ctx, auction)

        previous_owner = asset.owner
        if auction.has_winner():
            asset.owner = bidder
        asset.pending_auction_id = None
        asset_registry.put_asset(ctx, asset)

        if auction.has_winner():
            logger.info(
                "auction %d ended: %s won on %s with %d; asset %s %s -> %s",
                auction.id, bidder, platform, bid, asset.id, previous_owner, asset.owner,
            )
        else:
            logger.info(
                "auction %d ended without a winning bid; asset %s stays with %s",
                auction.id, asset.id, previous_owner,
            )
        return auction
