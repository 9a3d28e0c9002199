# core/utils.py

from datetime import datetime, timezone
from typing import Optional


def sanitize(data: dict) -> dict:
    """
    Sanitize dictionary data before it reaches the store:
    - Empty strings → None
    - Preserve booleans, None values
    - Strip string whitespace
    """
    clean = {}

    for k, v in data.items():
        if v is None or isinstance(v, bool):
            clean[k] = v
            continue

        if isinstance(v, str):
            stripped = v.strip()
            clean[k] = stripped if stripped != "" else None
            continue

        clean[k] = v

    return clean


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """
    Normalize store timestamps to aware UTC datetimes.
    Supabase returns ISO strings (sometimes with a trailing Z); the in-memory
    store keeps datetime objects.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def to_json_value(value):
    """datetime → ISO string, everything else unchanged."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value
