"""
Compact duration strings used for token lifetimes: "<integer><unit>"
where unit is one of s, m, h, d ("30s", "15m", "12h", "7d").
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from services.errors import InvalidConfiguration

# ASCII digits only; \d would also accept other scripts' digits
_DURATION_RE = re.compile(r"([0-9]+)([smhd])")

_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(expires_in: str) -> timedelta:
    """Convert a compact duration string to a timedelta.
    Raises InvalidConfiguration for any other shape or an out-of-range value.
    """
    if not isinstance(expires_in, str):
        raise InvalidConfiguration(f"Invalid expiration format: {expires_in!r}")
    match = _DURATION_RE.fullmatch(expires_in)
    if not match:
        raise InvalidConfiguration(f"Invalid expiration format: {expires_in!r}")
    value, unit = int(match.group(1)), match.group(2)
    try:
        return timedelta(**{_UNITS[unit]: value})
    except OverflowError:
        raise InvalidConfiguration(f"Expiration out of range: {expires_in!r}") from None


def resolve_expiration(expires_in: str, now: datetime | None = None) -> datetime:
    """Absolute expiry: now (UTC by default) plus the parsed duration."""
    if now is None:
        now = datetime.now(timezone.utc)
    try:
        return now + parse_duration(expires_in)
    except OverflowError:
        raise InvalidConfiguration(f"Expiration out of range: {expires_in!r}") from None
