"""Execution boundary: simulated and Hyperliquid settlement routers."""

from claw_agent.execution.router import HyperliquidExecutionRouter, SimulatedExecutionRouter

__all__ = ["SimulatedExecutionRouter", "HyperliquidExecutionRouter"]
