"""
Claw Agent

An autonomous, deterministic momentum decision loop for a small set of
tokens.

Components:
- Scheduler: Triggers ticks at a fixed interval, strictly sequential
- Market Source: Rolling-window snapshots (simulated or Hyperliquid)
- Momentum Strategy: 0–100 composite score → BUY / SELL / HOLD
- Risk Gate: Allocation, exposure, liquidity and cooldown rules
- Orchestrator: Strategies + risk gate, blocked decisions downgraded to HOLD
- Tick Pipeline: Portfolio state machine, execution dispatch, events, audit
- Execution Router: Simulated or Hyperliquid settlement boundary
- Storage: SQLite sink and per-tick reasoning log
- Monitoring: WebSocket event broadcaster, metrics, logging
"""

__version__ = "0.1.0"

from claw_agent.core.config import Config
from claw_agent.core.scheduler import Scheduler

__all__ = [
    "Config",
    "Scheduler",
]
