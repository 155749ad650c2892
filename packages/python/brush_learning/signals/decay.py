import math
from datetime import datetime

from brush_core.config import DECAY_DAYS


# signed age in days; future-dated signals count as fresh
def age_days(ts: datetime, now: datetime) -> float:
    return max(0.0, (now - ts).total_seconds() / 86400.0)


# classic exponential decay, exp(-age / decay_days)
def tdecay(ts: datetime, now: datetime, decay_days: float = DECAY_DAYS) -> float:
    return math.exp(-age_days(ts, now) / decay_days)
