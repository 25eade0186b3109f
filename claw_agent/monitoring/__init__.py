"""Monitoring: event broadcaster, metrics, logging setup."""

from claw_agent.monitoring.broadcaster import EventBroadcaster
from claw_agent.monitoring.metrics import MetricsCollector

__all__ = ["EventBroadcaster", "MetricsCollector"]
