"""
Tests for the auction lifecycle controller.

Each contract call runs in its own committed transaction (the `run`
fixture), mirroring how the harness drives it.
"""

from __future__ import annotations

import pytest

from auctionledger.errors import NotFound, ValidationError
from auctionledger.keys import KEY_LAST_AUCTION_ID, asset_key, auction_key
from auctionledger.lifecycle import (
    TRANSITIONS,
    AuctionContract,
    ContractPolicy,
    check_transition,
    select_winner,
)
from auctionledger.models import Asset, Auction, AuctionStatus
from auctionledger.store import MemoryStore, TransactionContext


# -----------------------------------------------------------------------------
# Assets
# -----------------------------------------------------------------------------


def test_add_then_get_asset(run) -> None:
    added = run("add_asset", "A1", "alice")
    assert run("get_asset", "A1") == added == Asset("A1", "alice", pending_auction_id=None)


def test_get_missing_asset(run) -> None:
    with pytest.raises(NotFound, match="asset not found"):
        run("get_asset", "nope")


def test_duplicate_asset_rejected_by_default(run) -> None:
    run("add_asset", "A1", "alice")
    with pytest.raises(ValidationError, match="asset exists"):
        run("add_asset", "A1", "mallory")
    assert run("get_asset", "A1").owner == "alice"


def test_duplicate_asset_overwrites_when_policy_allows(store: MemoryStore) -> None:
    contract = AuctionContract(ContractPolicy(allow_asset_overwrite=True))
    for owner in ("alice", "bob"):
        ctx = TransactionContext(store)
        contract.add_asset(ctx, "A1", owner)
        ctx.commit()
    assert contract.get_asset(TransactionContext(store), "A1").owner == "bob"


def test_list_assets(run) -> None:
    run("add_asset", "B", "bob")
    run("add_asset", "A", "alice")
    assert [a.id for a in run("list_assets")] == ["A", "B"]


# -----------------------------------------------------------------------------
# start_auction
# -----------------------------------------------------------------------------


def test_start_auction_writes_auction_counter_and_asset(run, store: MemoryStore) -> None:
    run("add_asset", "A1", "alice")
    auction_id = run("start_auction", "A1", ["x", "y"])

    assert auction_id == 1
    auction = run("get_auction", 1)
    assert auction == Auction(
        id=1,
        asset_id="A1",
        platforms=["x", "y"],
        cross_auction_ids=["", ""],
        status=AuctionStatus.STARTED,
    )
    assert run("get_asset", "A1").pending_auction_id == 1
    assert store.get(KEY_LAST_AUCTION_ID) == b"1"


def test_auction_ids_increase_across_assets(run) -> None:
    for asset_id in ("A1", "A2", "A3"):
        run("add_asset", asset_id, "alice")
    ids = [run("start_auction", a, ["x"]) for a in ("A2", "A1", "A3")]
    assert ids == [1, 2, 3]


def test_start_auction_missing_asset(run, store: MemoryStore) -> None:
    with pytest.raises(NotFound):
        run("start_auction", "ghost", ["x"])
    assert store.get(KEY_LAST_AUCTION_ID) is None


def test_start_auction_with_pending_auction_changes_nothing(run, store: MemoryStore) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    before = {k: store.get(k) for k in store.keys()}

    with pytest.raises(ValidationError, match="pending auction exists"):
        run("start_auction", "A1", ["y"])

    assert {k: store.get(k) for k in store.keys()} == before
    assert store.get(auction_key(2)) is None


def test_start_auction_needs_a_platform(run) -> None:
    run("add_asset", "A1", "alice")
    with pytest.raises(ValidationError, match="at least one platform"):
        run("start_auction", "A1", [])


def test_failed_call_does_not_advance_counter(store: MemoryStore, contract: AuctionContract, run) -> None:
    run("add_asset", "A1", "alice")
    ctx = TransactionContext(store)
    contract.start_auction(ctx, "A1", ["x"])
    # never committed
    assert run("start_auction", "A1", ["x"]) == 1


# -----------------------------------------------------------------------------
# bind_auction / mark_auction_ending
# -----------------------------------------------------------------------------


def test_bind_auction_sets_cross_ids(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x", "y"])
    bound = run("bind_auction", 1, ["ext-x-9", "ext-y-9"])

    assert bound.status is AuctionStatus.BIND
    assert run("get_auction", 1).cross_auction_ids == ["ext-x-9", "ext-y-9"]


def test_bind_auction_length_mismatch(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x", "y"])
    with pytest.raises(ValidationError, match="2 platform"):
        run("bind_auction", 1, ["only-one"])
    auction = run("get_auction", 1)
    assert auction.status is AuctionStatus.STARTED
    assert auction.cross_auction_ids == ["", ""]


def test_bind_missing_auction(run) -> None:
    with pytest.raises(NotFound, match="auction not found"):
        run("bind_auction", 42, ["a"])


def test_bind_twice_rejected(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    run("bind_auction", 1, ["e1"])
    with pytest.raises(ValidationError, match="invalid transition"):
        run("bind_auction", 1, ["e2"])


def test_mark_ending_from_started_and_bind(run) -> None:
    run("add_asset", "A1", "alice")
    run("add_asset", "A2", "alice")
    run("start_auction", "A1", ["x"])
    run("start_auction", "A2", ["x"])
    run("bind_auction", 2, ["e"])

    assert run("mark_auction_ending", "A1").status is AuctionStatus.ENDING
    assert run("mark_auction_ending", "A2").status is AuctionStatus.ENDING


def test_mark_ending_twice_rejected(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    run("mark_auction_ending", "A1")
    with pytest.raises(ValidationError, match="Ending -> Ending"):
        run("mark_auction_ending", "A1")


def test_mark_ending_without_pending_auction(run) -> None:
    run("add_asset", "A1", "alice")
    with pytest.raises(NotFound, match="no pending auction"):
        run("mark_auction_ending", "A1")


def test_mark_ending_missing_asset(run) -> None:
    with pytest.raises(NotFound, match="asset not found"):
        run("mark_auction_ending", "ghost")


def test_mark_ending_dangling_pending_reference(store: MemoryStore, run) -> None:
    store.put(asset_key("A1"), Asset("A1", "alice", pending_auction_id=9).to_json().encode())
    with pytest.raises(NotFound, match="auction not found: 9"):
        run("mark_auction_ending", "A1")


# -----------------------------------------------------------------------------
# end_auction
# -----------------------------------------------------------------------------


def test_select_winner_first_strict_maximum() -> None:
    assert select_winner(["p1", "p2", "p3"], [10, 20, 20], ["a", "b", "c"]) == (20, "b", "p2")


def test_select_winner_no_positive_bid() -> None:
    assert select_winner(["p1", "p2"], [0, -5], ["a", "b"]) == (0, "", "")


def test_end_auction_tie_keeps_earliest_platform(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["p1", "p2", "p3"])
    ended = run("end_auction", 1, [10, 20, 20], ["a", "b", "c"])

    assert (ended.highest_bid, ended.highest_bidder, ended.highest_bid_platform) == (20, "b", "p2")
    assert ended.status is AuctionStatus.ENDED


def test_end_auction_transfers_ownership(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x", "y"])
    run("end_auction", 1, [5, 9], ["bob", "carol"])

    asset = run("get_asset", "A1")
    assert asset.owner == "carol"
    assert asset.pending_auction_id is None


def test_end_auction_without_winner_keeps_owner(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    ended = run("end_auction", 1, [0], [""])

    assert ended.status is AuctionStatus.ENDED
    assert not ended.has_winner()
    asset = run("get_asset", "A1")
    assert asset.owner == "alice"
    assert asset.pending_auction_id is None


@pytest.mark.parametrize(
    "bids,bidders",
    [([1], ["a", "b"]), ([1, 2], ["a"]), ([1, 2, 3], ["a", "b", "c"])],
)
def test_end_auction_length_mismatch(run, bids: list[int], bidders: list[str]) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x", "y"])
    with pytest.raises(ValidationError, match="2 platform"):
        run("end_auction", 1, bids, bidders)
    assert run("get_asset", "A1").pending_auction_id == 1


def test_end_missing_auction(run) -> None:
    with pytest.raises(NotFound):
        run("end_auction", 5, [], [])


def test_end_auction_missing_asset(store: MemoryStore, run) -> None:
    orphan = Auction(id=1, asset_id="gone", platforms=["x"], cross_auction_ids=[""])
    store.put(auction_key(1), orphan.to_json().encode())
    with pytest.raises(NotFound, match="asset not found"):
        run("end_auction", 1, [3], ["bob"])
    assert run("get_auction", 1).status is AuctionStatus.STARTED


def test_end_auction_result_must_match_pending_auction(store: MemoryStore, run) -> None:
    run("add_asset", "A1", "alice")
    stray = Auction(id=7, asset_id="A1", platforms=["x"], cross_auction_ids=[""])
    store.put(auction_key(7), stray.to_json().encode())

    with pytest.raises(ValidationError, match="invalid auction result"):
        run("end_auction", 7, [3], ["bob"])
    assert run("get_asset", "A1").owner == "alice"


def test_ended_auction_is_immutable(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    run("end_auction", 1, [4], ["bob"])

    with pytest.raises(ValidationError, match="invalid transition"):
        run("end_auction", 1, [99], ["mallory"])
    with pytest.raises(ValidationError, match="invalid transition"):
        run("bind_auction", 1, ["late"])
    assert run("get_auction", 1).highest_bidder == "bob"
    assert run("get_asset", "A1").owner == "bob"


def test_asset_can_be_auctioned_again_after_end(run) -> None:
    run("add_asset", "A1", "alice")
    run("start_auction", "A1", ["x"])
    run("end_auction", 1, [4], ["bob"])
    assert run("start_auction", "A1", ["y"]) == 2
    run("end_auction", 2, [8], ["dave"])
    assert run("get_asset", "A1").owner == "dave"


# -----------------------------------------------------------------------------
# Transition table
# -----------------------------------------------------------------------------


def test_transition_table_is_forward_only() -> None:
    order = [AuctionStatus.STARTED, AuctionStatus.BIND, AuctionStatus.ENDING, AuctionStatus.ENDED]
    for source, targets in TRANSITIONS.items():
        for target in targets:
            assert order.index(target) > order.index(source)
    assert TRANSITIONS[AuctionStatus.ENDED] == frozenset()


def test_check_transition_rejects_backwards() -> None:
    auction = Auction(id=1, asset_id="A1", status=AuctionStatus.ENDING)
    with pytest.raises(ValidationError, match="Ending -> Bind"):
        check_transition(auction, AuctionStatus.BIND)
    check_transition(auction, AuctionStatus.ENDED)


def test_contract_holds_no_call_state(store: MemoryStore) -> None:
    contract = AuctionContract()
    assert not hasattr(contract, "__dict__")
    with pytest.raises(AttributeError):
        contract.ctx = TransactionContext(store)  # type: ignore[attr-defined]


# -----------------------------------------------------------------------------
# End-to-end
# -----------------------------------------------------------------------------


def test_full_lifecycle(run) -> None:
    run("add_asset", "A1", "alice")

    assert run("start_auction", "A1", ["x", "y"]) == 1
    assert run("get_asset", "A1").pending_auction_id == 1

    run("bind_auction", 1, ["ext-x-9", "ext-y-9"])
    assert run("get_auction", 1).status is AuctionStatus.BIND

    run("mark_auction_ending", "A1")
    assert run("get_auction", 1).status is AuctionStatus.ENDING

    run("end_auction", 1, [5, 9], ["bob", "carol"])
    auction = run("get_auction", 1)
    assert auction.status is AuctionStatus.ENDED
    assert auction.highest_bidder == "carol"
    assert auction.highest_bid_platform == "y"

    asset = run("get_asset", "A1")
    assert asset.owner == "carol"
    assert asset.pending_auction_id is None
