"""General-purpose utility helpers."""
import html
import re
from datetime import datetime, timezone
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")
_TAG = re.compile(r"<[^>]+>")


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


def to_snake_case(name: str) -> str:
    """camelCase / PascalCase -> snake_case. Already snake names are unchanged."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def snake_case_keys(value: Any) -> Any:
    """Recursively rename dict keys to snake_case."""
    if isinstance(value, dict):
        return {to_snake_case(str(k)): snake_case_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_case_keys(v) for v in value]
    return value


def parse_iso_datetime(value: str | datetime) -> datetime:
    """Parse ISO-8601 (``Z`` suffix accepted). Naive values are taken as UTC.

    Raises ValueError on malformed input.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def strip_html(text: str) -> str:
    """Drop tags and unescape entities, collapsing whitespace."""
    return " ".join(html.unescape(_TAG.sub(" ", text)).split())

