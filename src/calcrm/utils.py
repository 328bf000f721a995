import re
from datetime import UTC, datetime

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def now() -> datetime:
    return datetime.now(UTC)


def parse_leading_int(value: object) -> int | None:
    """Parse the leading integer of a raw query value ("12abc" -> 12, "abc" -> None)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if not isinstance(value, str):
        return None
    match = LEADING_INT_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))
