"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from auctionledger.harness import Harness
from auctionledger.lifecycle import AuctionContract
from auctionledger.store import FileStore, MemoryStore, TransactionContext


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def contract() -> AuctionContract:
    return AuctionContract()


@pytest.fixture
def run(store: MemoryStore, contract: AuctionContract):
    """Run one contract method in its own committed transaction."""

    def _run(method: str, *args):
        ctx = TransactionContext(store, operation=method)
        result = getattr(contract, method)(ctx, *args)
        ctx.commit()
        return result

    return _run


@pytest.fixture
def harness(store: MemoryStore) -> Harness:
    return Harness(store)


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / ".auctionledger"


@pytest.fixture
def file_harness(state_dir: Path) -> Harness:
    return Harness(FileStore(state_dir), state_dir=state_dir)
