"""
Retry delay helpers: exponential backoff with jitter and Retry-After parsing.
"""

import random
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0
JITTER_RATIO = 0.3


def calculate_backoff(
    attempt: int,
    *,
    base: float = BASE_DELAY_SECONDS,
    cap: float = MAX_DELAY_SECONDS,
    jitter: float = JITTER_RATIO,
    rng: random.Random | None = None,
) -> float:
    """
    Compute the delay in seconds before retry number ``attempt``.

    The delay doubles with each retry up to ``cap``, and up to ``jitter``
    of it is added on top so concurrent callers do not retry in lockstep.

    Args:
        attempt: 1-based retry number
        base: Delay before the first retry
        cap: Upper bound of the exponential part
        jitter: Fraction of the delay added as uniform random jitter
        rng: Optional random generator (for deterministic tests)

    Returns:
        Delay in seconds, in ``[delay, delay * (1 + jitter)]``
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    delay = min(base * (2 ** (attempt - 1)), cap)
    rand = rng.random() if rng is not None else random.random()
    return delay + rand * jitter * delay


def parse_retry_after(
    value: str | None, now: datetime | None = None
) -> tuple[float | None, datetime | None]:
    """
    Parse a Retry-After header value.

    The header may hold a number of seconds or an HTTP date. Dates in the
    past yield a delay of zero.

    Returns:
        ``(seconds, reset_at)``. ``seconds`` is None when the value is missing
        or unparseable; ``reset_at`` is only set for the date form.
    """
    if not value:
        return None, None
    value = value.strip()

    try:
        return float(max(0, int(value))), None
    except ValueError:
        pass

    try:
        reset_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None, None
    if reset_at.tzinfo is None:
        reset_at = reset_at.replace(tzinfo=UTC)

    current = now or datetime.now(UTC)
    return max(0.0, (reset_at - current).total_seconds()), reset_at
