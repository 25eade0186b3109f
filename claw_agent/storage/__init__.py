"""Persistence: SQLite sink and per-tick reasoning log."""

from claw_agent.storage.reasoning_log import ReasoningLog
from claw_agent.storage.sqlite_sink import SqliteSink

__all__ = ["SqliteSink", "ReasoningLog"]
