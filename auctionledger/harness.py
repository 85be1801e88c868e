"""
Invocation boundary: single chokepoint for every ledger operation.

invoke() decodes the named operation's arguments, runs it inside a fresh
TransactionContext, and commits only if the operation returned normally.
Binary identifiers are decoded here and nowhere else, into "hex:<hex>" ids
that plain-text ids are not allowed to spell. A failed audit-log write after
a commit is logged, not raised: the state change has already happened.

Operations register themselves by name:

    asset.add            {"asset_id", "owner"}
    asset.get            {"asset_id"}
    asset.list           {}
    auction.start        {"asset_id", "platforms"}
    auction.bind         {"auction_id", "cross_auction_ids"}
    auction.mark_ending  {"asset_id"}
    auction.end          {"auction_id", "highest_bids", "highest_bidders"}
    auction.get          {"auction_id"}
    auction.list         {}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from .audit_log import log_operation
from .errors import AuctionLedgerError, DecodeError
from .lifecycle import AuctionContract
from .models import BINARY_ID_PREFIX, binary_id_text, decode_binary_id
from .store import StateStore, TransactionContext

logger = logging.getLogger(__name__)

OperationFn = Callable[[AuctionContract, TransactionContext, dict[str, Any]], Any]


@dataclass(frozen=True)
class Operation:
    """Static metadata about a registered operation."""

    name: str
    fn: OperationFn
    writes: bool


# Global registry: operation name → Operation
_OPERATIONS: dict[str, Operation] = {}


def operation(name: str, *, writes: bool) -> Callable[[OperationFn], OperationFn]:
    def register(fn: OperationFn) -> OperationFn:
        _OPERATIONS[name] = Operation(name=name, fn=fn, writes=writes)
        return fn

    return register


def get_operation(name: str) -> Operation | None:
    return _OPERATIONS.get(name)


def list_operations() -> list[str]:
    return sorted(_OPERATIONS)


# -----------------------------------------------------------------------------
# Argument decoding
# -----------------------------------------------------------------------------


def decode_args(raw: str | bytes | Mapping[str, Any] | None) -> dict[str, Any]:
    """Accept a JSON object (text or bytes) or an already-decoded mapping."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Arguments are not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("Arguments must be a JSON object")
    return data


def _field(args: dict[str, Any], name: str) -> Any:
    if name not in args:
        raise DecodeError(f"Missing argument: {name}")
    return args[name]


def _text(args: dict[str, Any], name: str) -> str:
    value = _field(args, name)
    if not isinstance(value, str) or not value:
        raise DecodeError(f"{name} must be a non-empty string")
    return value


def _asset_id(args: dict[str, Any], name: str = "asset_id") -> str:
    """Asset ids arrive as text, or as {"base64": ...} for binary ids."""
    value = _field(args, name)
    if isinstance(value, dict):
        encoded = value.get("base64")
        if not isinstance(encoded, str):
            raise DecodeError(f"{name} must be a string or {{\"base64\": ...}}")
        return binary_id_text(decode_binary_id(encoded))
    text = _text(args, name)
    if text.startswith(BINARY_ID_PREFIX):
        raise DecodeError(
            f"{name} must not start with {BINARY_ID_PREFIX!r}; pass binary ids as {{\"base64\": ...}}"
        )
    return text


def _auction_id(args: dict[str, Any], name: str = "auction_id") -> int:
    value = _field(args, name)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DecodeError(f"{name} must be a positive integer")
    return value


def _text_list(args: dict[str, Any], name: str, *, allow_empty_items: bool = False) -> list[str]:
    value = _field(args, name)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DecodeError(f"{name} must be a list of strings")
    if not allow_empty_items and any(not v for v in value):
        raise DecodeError(f"{name} must not contain empty strings")
    return value


def _int_list(args: dict[str, Any], name: str) -> list[int]:
    value = _field(args, name)
    if not isinstance(value, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in value
    ):
        raise DecodeError(f"{name} must be a list of integers")
    return value


# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------


@operation("asset.add", writes=True)
def _add_asset(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    asset = contract.add_asset(ctx, _asset_id(args), _text(args, "owner"))
    return asset.to_dict()


@operation("asset.get", writes=False)
def _get_asset(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    return contract.get_asset(ctx, _asset_id(args)).to_dict()


@operation("asset.list", writes=False)
def _list_assets(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    return [a.to_dict() for a in contract.list_assets(ctx)]


@operation("auction.start", writes=True)
def _start_auction(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    auction_id = contract.start_auction(ctx, _asset_id(args), _text_list(args, "platforms"))
    return {"auction_id": auction_id}


@operation("auction.bind", writes=True)
def _bind_auction(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    auction = contract.bind_auction(
        ctx,
        _auction_id(args),
        _text_list(args, "cross_auction_ids", allow_empty_items=True),
    )
    return auction.to_dict()


@operation("auction.mark_ending", writes=True)
def _mark_ending(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    return contract.mark_auction_ending(ctx, _asset_id(args)).to_dict()


@operation("auction.end", writes=True)
def _end_auction(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    auction = contract.end_auction(
        ctx,
        _auction_id(args),
        _int_list(args, "highest_bids"),
        _text_list(args, "highest_bidders", allow_empty_items=True),
    )
    return auction.to_dict()


@operation("auction.get", writes=False)
def _get_auction(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    return contract.get_auction(ctx, _auction_id(args)).to_dict()


@operation("auction.list", writes=False)
def _list_auctions(contract: AuctionContract, ctx: TransactionContext, args: dict[str, Any]) -> Any:
    return [a.to_dict() for a in contract.list_auctions(ctx)]


# -----------------------------------------------------------------------------
# Harness
# -----------------------------------------------------------------------------


@dataclass
class InvokeResult:
    """Result of Harness.invoke()."""

    operation: str
    tx_id: str
    result: Any = None
    keys_written: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "tx_id": self.tx_id,
            "result": self.result,
            "keys_written": list(self.keys_written),
        }


class Harness:
    """
    Routes named operations to the contract, one transaction per call.

    The harness keeps only long-lived collaborators (store, contract, where
    to journal); every call-scoped value lives in the TransactionContext
    created inside invoke().
    """

    def __init__(
        self,
        store: StateStore,
        *,
        contract: AuctionContract | None = None,
        state_dir: Path | None = None,
    ):
        self.store = store
        self.contract = contract or AuctionContract()
        self.state_dir = state_dir

    def _journal(self, tx_id: str, operation_name: str, keys_written: list[str], args: dict[str, Any]) -> None:
        # The state is already committed; a journal failure only loses the audit record.
        try:
            log_operation(self.state_dir, tx_id, operation_name, keys_written, metadata={"args": args})
        except OSError as e:
            logger.error("%s committed (tx %s) but the audit log write failed: %s", operation_name, tx_id, e)

    def invoke(self, operation_name: str, args: str | bytes | Mapping[str, Any] | None = None) -> InvokeResult:
        op = get_operation(operation_name)
        if op is None:
            raise DecodeError(
                f"Unknown operation: {operation_name!r} (known: {', '.join(list_operations())})"
            )
        decoded = decode_args(args)

        ctx = TransactionContext(self.store, operation=op.name)
        keys_written: list[str] = []
        with self.store.lock():
            try:
                result = op.fn(self.contract, ctx, decoded)
            except AuctionLedgerError as e:
                logger.warning("%s rejected (tx %s): %s: %s", op.name, ctx.tx_id, type(e).__name__, e)
                raise
            if op.writes:
                keys_written = ctx.commit()

        if keys_written and self.state_dir is not None:
            self._journal(ctx.tx_id, op.name, keys_written, decoded)
        logger.debug("%s ok (tx %s)", op.name, ctx.tx_id)
        return InvokeResult(operation=op.name, tx_id=ctx.tx_id, result=result, keys_written=keys_written)
