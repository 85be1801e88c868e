"""
Error taxonomy for ledger operations.

Every error propagates straight to the caller. Nothing in the core retries
or recovers locally; the invocation boundary decides whether a call commits.
"""

from __future__ import annotations


class AuctionLedgerError(Exception):
    """Base class for all ledger errors."""


class NotFound(AuctionLedgerError, LookupError):
    """An asset or auction lookup missed."""


class ValidationError(AuctionLedgerError, ValueError):
    """A request is well-formed but violates a lifecycle rule."""


class DecodeError(AuctionLedgerError, ValueError):
    """An argument payload could not be decoded."""


class StoreError(AuctionLedgerError):
    """The underlying state store failed to read or write."""
