# periodic_trigger.py
# Timestamp-driven gate deciding when the expensive detector runs.

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class PeriodicTrigger:
    """
    Fires at most once per `frequency` milliseconds.

    frequency < 0: never fires
    frequency == 0: fires on every call
    frequency > 0: fires on the first call, then whenever at least `frequency`
                   ms have passed since the last firing. The last firing time is
                   snapped down to a multiple of `frequency`, so irregular call
                   timing does not accumulate drift.

    Not thread-safe; one instance per stream.
    """

    def __init__(self, frequency: int):
        self.frequency = int(frequency)
        self._last_fired: Optional[int] = None

    @property
    def disabled(self) -> bool:
        return self.frequency < 0

    @property
    def always_on(self) -> bool:
        return self.frequency == 0

    @property
    def last_fired(self) -> Optional[int]:
        return self._last_fired

    def should_fire(self, now: int) -> bool:
        if self.disabled:
            return False
        if self.always_on:
            return True

        if self._last_fired is None:
            self._last_fired = now
            logger.debug(f"PeriodicTrigger: first firing at t={now}")
            return True

        if now - self._last_fired >= self.frequency:
            self._last_fired = now - (now % self.frequency)
            logger.debug(f"PeriodicTrigger: fired at t={now} (grid={self._last_fired})")
            return True
        return False
