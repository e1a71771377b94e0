# Overview: Datetime and money helpers shared by validation and the models' to_dict().
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a client-supplied timestamp (sale_start, sale_end, order dates) for
    a DateTime column. Columns hold naive datetimes that mean UTC.

    - None or a blank string gives None
    - a value without an offset ("2025-01-31", "2025-01-31T09:30") comes back
      naive and unchanged; it is taken to already be UTC
    - a trailing "Z" or an explicit offset is shifted to UTC and the offset dropped

    Raises ValueError for anything datetime.fromisoformat rejects.
    """
    text = (value or "").strip()
    if not text:
        return None

    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """JSON form of a stored timestamp: whole seconds, UTC, "Z" suffix ("2025-01-31T09:30:00Z")."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"


def to_money(value) -> Optional[float]:
    """NUMERIC(10, 2) columns are serialized as plain JSON numbers."""
    if value is None:
        return None
    return float(value)
