"""
Scheduler: Triggers ticks at a fixed interval.

The first tick runs immediately. Ticks are strictly sequential: the next
tick is not due until the current one has completed. If a tick overruns the
interval the next tick starts immediately afterwards; missed intervals are
not replayed and ticks never overlap.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Fixed-interval tick scheduler.

    Sleeps in slices of at most `max_sleep_slice` seconds so `stop()` is
    honoured promptly between ticks.
    """

    def __init__(
        self,
        interval_ms: int,
        tick_callback: Callable[[], object],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        max_sleep_slice: float = 1.0,
    ):
        """
        Initialize scheduler.

        Args:
            interval_ms: Milliseconds between tick starts
            tick_callback: Function to call on each tick
            clock: Monotonic clock in seconds (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be > 0, got {interval_ms}")
        self.interval = interval_ms / 1000.0
        self.tick_callback = tick_callback
        self.clock = clock
        self.sleep = sleep
        self.max_sleep_slice = max_sleep_slice
        self.running = False
        self.ticks = 0
        self.overruns = 0

    def next_due(self, tick_started: float, tick_finished: float) -> float:
        """
        Start time of the next tick.

        Returns `tick_started + interval`, or `tick_finished` if the tick
        overran (immediate-after catch-up).
        """
        due = tick_started + self.interval
        if tick_finished >= due:
            self.overruns += 1
            logger.warning(
                f"[Scheduler] Tick took {tick_finished - tick_started:.3f}s "
                f"(> {self.interval:.3f}s interval); next tick starts immediately"
            )
            return tick_finished
        return due

    def run_forever(self, max_ticks: Optional[int] = None):
        """
        Run scheduler loop until stopped (or `max_ticks` ticks have run).

        Blocks. Exceptions escaping the callback are logged and the loop
        continues.
        """
        self.running = True
        logger.info(f"[Scheduler] Started. Interval={self.interval:.3f}s")

        due = self.clock()
        try:
            while self.running:
                now = self.clock()
                if now < due:
                    self.sleep(min(due - now, self.max_sleep_slice))
                    continue

                started = self.clock()
                try:
                    self.tick_callback()
                except Exception as e:
                    logger.exception(f"[Scheduler] ERROR during tick: {e}")
                self.ticks += 1

                if max_ticks is not None and self.ticks >= max_ticks:
                    break

                due = self.next_due(started, self.clock())
        except KeyboardInterrupt:
            logger.info("[Scheduler] Interrupted by user")
        finally:
            self.running = False
            logger.info(f"[Scheduler] Stopped after {self.ticks} tick(s)")

    def stop(self):
        """Stop the scheduler loop (takes effect between ticks)."""
        logger.info("[Scheduler] Stopping...")
        self.running = False
