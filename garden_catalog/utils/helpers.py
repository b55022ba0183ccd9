"""
Common utility functions and helpers.
"""
from datetime import datetime, timezone
from typing import Any, List, Optional
import json
import logging
import os
import re
import uuid

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Generate a primary key for a new row."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware current time, used for created/updated columns."""
    return datetime.now(timezone.utc)


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a bed or plant name for case-insensitive matching.

    Args:
        name: Raw name as typed by the user or returned by the model

    Returns:
        Lower-cased name with surrounding whitespace removed
    """
    return (name or "").strip().lower()


def strip_bed_suffix(name: Optional[str]) -> str:
    """
    Drop a trailing "bed" word so "Herb Garden bed" matches "Herb Garden".

    Args:
        name: Bed name

    Returns:
        Normalized name without the suffix
    """
    return re.sub(r"\s+bed$", "", normalize_name(name), flags=re.IGNORECASE).strip()


def load_json_list(raw: Optional[str]) -> List[Any]:
    """Decode a JSON-encoded list column; anything that is not a JSON list yields []."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        logger.warning("Stored JSON list is not valid JSON; treating as empty")
        return []
    return value if isinstance(value, list) else []


def dump_json_list(items: List[Any]) -> str:
    return json.dumps(items, ensure_ascii=False)


def to_int(value: Any, default: int) -> int:
    """Parse *value* as a positive int, falling back to *default*."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def safe_remove(path: str) -> None:
    try:
        if path and os.path.exists(path):
            os.remove(path)
    except Exception as exc:
        logger.warning("Could not remove file %r: %s", path, exc)
