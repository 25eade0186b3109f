"""
Metrics Collector

Running counters for the tick loop: ticks run/failed, decisions by action,
risk blocks, executions and last tick duration.
"""

from collections import Counter
from typing import Iterable

from claw_agent.data.models import Decision, ExecutionRecord


class MetricsCollector:
    """In-process counters, logged after every tick."""

    def __init__(self):
        self.ticks_run = 0
        self.ticks_failed = 0
        self.decisions = Counter()
        self.risk_blocked = 0
        self.executions_ok = 0
        self.executions_failed = 0
        self.last_tick_seconds = 0.0

    def record_decisions(self, decisions: Iterable[Decision]) -> None:
        for d in decisions:
            self.decisions[d.action.value] += 1
            if "RISK BLOCKED:" in d.reason:
                self.risk_blocked += 1

    def record_execution(self, record: ExecutionRecord) -> None:
        if record.success:
            self.executions_ok += 1
        else:
            self.executions_failed += 1

    def record_tick(self, seconds: float, ok: bool) -> None:
        self.ticks_run += 1
        if not ok:
            self.ticks_failed += 1
        self.last_tick_seconds = seconds

    def snapshot(self) -> dict:
        return {
            "ticks_run": self.ticks_run,
            "ticks_failed": self.ticks_failed,
            "decisions": dict(self.decisions),
            "risk_blocked": self.risk_blocked,
            "executions_ok": self.executions_ok,
            "executions_failed": self.executions_failed,
            "last_tick_seconds": round(self.last_tick_seconds, 4),
        }
