"""
=============================================================================
CLOCK.PY — Wall clock
=============================================================================
Every "as of today" rule (missed days, freeze cooldown, challenge expiry,
the 22:00 battle cutoff) asks a clock instead of calling datetime.now()
directly, so tests can pin the date and time.

A clock is anything with:
  today() → date
  now()   → timezone-aware datetime
"""

import os
from datetime import date, datetime
import pytz

DEFAULT_TIMEZONE = os.getenv("HABITDUEL_TIMEZONE", "Europe/Madrid")


class SystemClock:
    """Real clock in the configured local timezone"""

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()
