"""
Ledger configuration loaded from TOML.

    [store]
    state_dir = ".auctionledger"

    [policy]
    allow_asset_overwrite = false

    [logging]
    level = "WARNING"

A missing file means defaults. Relative state_dir paths resolve against the
directory holding the config file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .lifecycle import ContractPolicy

CONFIG_FILENAME = "auctionledger.toml"
DEFAULT_STATE_DIR = ".auctionledger"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class LedgerConfig:
    state_dir: Path = Path(DEFAULT_STATE_DIR)
    allow_asset_overwrite: bool = False
    log_level: str = "WARNING"

    def policy(self) -> ContractPolicy:
        return ContractPolicy(allow_asset_overwrite=self.allow_asset_overwrite)


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_config(data: dict[str, Any], *, base_dir: Path | None = None) -> LedgerConfig:
    store = _coerce_dict(data.get("store"))
    policy = _coerce_dict(data.get("policy"))
    logging_section = _coerce_dict(data.get("logging"))

    state_dir_raw = store.get("state_dir", DEFAULT_STATE_DIR)
    if not isinstance(state_dir_raw, str) or not state_dir_raw.strip():
        raise ValueError("store.state_dir must be a non-empty string")
    state_dir = Path(state_dir_raw.strip()).expanduser()
    if base_dir is not None and not state_dir.is_absolute():
        state_dir = base_dir / state_dir

    allow_overwrite = policy.get("allow_asset_overwrite", False)
    if not isinstance(allow_overwrite, bool):
        raise ValueError("policy.allow_asset_overwrite must be true or false")

    level = str(logging_section.get("level", "WARNING")).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}")

    return LedgerConfig(state_dir=state_dir, allow_asset_overwrite=allow_overwrite, log_level=level)


def load_config(path: Path | None) -> LedgerConfig:
    """Load configuration from a TOML file; defaults when the file is absent."""
    if path is None or not path.exists():
        return LedgerConfig()

    import tomllib

    data = tomllib.loads(path.read_text(encoding="utf-8"))
    return parse_config(data, base_dir=path.resolve().parent)
