"""
Identifier helpers shared by the store and the harness.

This module intentionally avoids third-party dependencies.
"""

from __future__ import annotations

import os
import time


_CROCKFORD32 = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ULID_BITS = 130  # 26 symbols * 5 bits; the top two bits are always zero


def new_tx_id(*, timestamp_ms: int | None = None) -> str:
    """
    Generate a transaction id as a ULID (26 chars, Crockford base32).

    48-bit millisecond timestamp followed by 80 random bits, so ids sort by
    creation time.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    if not (0 <= timestamp_ms < (1 << 48)):
        raise ValueError("timestamp_ms out of range for ULID")

    value = (timestamp_ms << 80) | int.from_bytes(os.urandom(10), "big")
    return "".join(
        _CROCKFORD32[(value >> shift) & 31] for shift in range(_ULID_BITS - 5, -1, -5)
    )

