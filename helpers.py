from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

DEFAULT_RECORD_PER_PAGE = 10
DEFAULT_PAGE = 1


def utc_now() -> datetime:
    """Current UTC time, truncated to whole seconds like stored timestamps."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_fixed(number: float, precision: int = 2) -> float:
    """Round half away from zero to `precision` decimals.

    Goes through the decimal repr of the float so 19.995 becomes 20.0
    instead of falling to 19.99 on binary error.
    """
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP))


def window_contains(start: datetime, end: datetime, check: datetime) -> bool:
    """True when `check` lies strictly inside the (start, end) window."""
    return start < check < end


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def page_bounds(record_per_page: Optional[str], page: Optional[str]) -> tuple[int, int]:
    """
    Resolve raw query values into a slice.

    Missing, unparsable or non-positive values fall back to the defaults
    (10 records, page 1).

    Returns:
        (start_index, record_per_page)
    """
    per_page = _positive_int(record_per_page, DEFAULT_RECORD_PER_PAGE)
    current = _positive_int(page, DEFAULT_PAGE)
    return (current - 1) * per_page, per_page
