import math
from typing import Optional


def remaining(now: float, started_at: Optional[float], duration: int) -> int:
    """Whole seconds left on the board clock; full duration before the game starts."""
    if started_at is None:
        return int(duration)
    elapsed = math.floor(now - started_at)
    return int(min(duration, max(0, duration - elapsed)))


def deadline(started_at: float, duration: int) -> float:
    return started_at + duration
