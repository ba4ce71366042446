"""
Pricing engine for dropmint.

A stage prices linearly between start_price at start_time and
end_price at end_time (a dutch auction when start > end). Prices are
what the minter owes, so interpolation rounds up.
"""

from dropmint.core.exceptions import StageNotActive
from dropmint.core.models import DropStage


def ensure_active(stage: DropStage, now: int) -> None:
    """Raise StageNotActive unless start_time <= now <= end_time."""
    if now < stage.start_time or now > stage.end_time:
        raise StageNotActive(
            "Stage is not active",
            {"now": now, "start_time": stage.start_time, "end_time": stage.end_time},
        )


def current_price(stage: DropStage, now: int) -> int:
    """
    Unit price of `stage` at `now`.

        price = ceil((start_price * remaining + end_price * elapsed) / duration)

    A zero-length window can only be active at its single instant, where
    nothing has elapsed, so it prices at start_price.
    """
    ensure_active(stage, now)

    if stage.start_price == stage.end_price:
        return stage.start_price

    duration = stage.end_time - stage.start_time
    if duration == 0:
        return stage.start_price

    elapsed   = now - stage.start_time
    remaining = duration - elapsed
    weighted  = stage.start_price * remaining + stage.end_price * elapsed

    return -(-weighted // duration)
