"""
Asset ownership ledger with multi-platform auctions.

State lives in an external key-value store; this package holds the rules:

- Assets are registered once and change owner only through an auction
- An asset has at most one pending auction at a time
- Auctions move Started → Bind → Ending → Ended and never leave Ended
- The winner is the first platform holding the strictly highest bid
- Every call runs in its own transaction context and commits all or nothing
"""

__version__ = "0.1.0"

from .errors import AuctionLedgerError, DecodeError, NotFound, StoreError, ValidationError
from .models import Asset, Auction, AuctionStatus
from .store import FileStore, MemoryStore, StateStore, TransactionContext
from .lifecycle import AuctionContract, ContractPolicy, select_winner
from .harness import Harness, InvokeResult

__all__ = [
    "__version__",
    # Errors
    "AuctionLedgerError",
    "DecodeError",
    "NotFound",
    "StoreError",
    "ValidationError",
    # Records
    "Asset",
    "Auction",
    "AuctionStatus",
    # Storage
    "FileStore",
    "MemoryStore",
    "StateStore",
    "TransactionContext",
    # Lifecycle
    "AuctionContract",
    "ContractPolicy",
    "select_winner",
    # Boundary
    "Harness",
    "InvokeResult",
]
