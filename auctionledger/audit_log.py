"""
Journal of committed transactions.

Each write transaction that commits appends one JSON line to
<state_dir>/audit.log naming the operation, its transaction id, and the
keys it wrote. Lines are never rewritten.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOG_NAME = "audit.log"


@dataclass
class AuditEntry:
    """A single committed transaction."""
    timestamp: str
    tx_id: str
    operation: str
    keys_written: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "tx_id": self.tx_id,
            "operation": self.operation,
            "keys_written": list(self.keys_written),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            tx_id=data["tx_id"],
            operation=data["operation"],
            keys_written=list(data.get("keys_written", [])),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(state_dir: Path) -> Path:
    return state_dir / AUDIT_LOG_NAME


def log_operation(
    state_dir: Path,
    tx_id: str,
    operation: str,
    keys_written: list[str],
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Append a committed transaction to the audit log.

    Args:
        state_dir: Directory holding the ledger state
        tx_id: Transaction id of the committed call
        operation: Boundary operation name (e.g., "auction.start")
        keys_written: Store keys the commit wrote
        metadata: Operation arguments or results worth keeping

    Returns:
        The appended entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        tx_id=tx_id,
        operation=operation,
        keys_written=list(keys_written),
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(state_dir)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict(), sort_keys=True) + "\n")

    return entry


def read_audit_log(state_dir: Path, last_n: int | None = None) -> list[AuditEntry]:
    """Read entries oldest first; `last_n` keeps only the most recent N."""
    log_path = get_audit_log_path(state_dir)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError):
                continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    lines = [f"[{entry.timestamp}] {entry.operation} tx={entry.tx_id}"]
    if entry.keys_written:
        lines.append(f"  Wrote: {', '.join(entry.keys_written)}")
    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)
