from __future__ import annotations

from datetime import datetime, timezone


def now_utc_iso() -> str:
    """Return an RFC 3339/ISO timestamp in UTC with seconds precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO date or timestamp; a trailing ``Z`` is read as UTC."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_solr_date(value: str) -> str:
    """Normalize an ISO timestamp to the Zulu form Solr date fields expect.

    Text that does not parse is returned unchanged.
    """
    try:
        parsed = parse_iso(value)
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    parsed = parsed.astimezone(timezone.utc).replace(microsecond=0, tzinfo=None)
    return parsed.isoformat() + "Z"
