"""Core system components: config, portfolio, orchestrator, pipeline, scheduler."""

from claw_agent.core.config import Config
from claw_agent.core.orchestrator import DecisionOrchestrator
from claw_agent.core.pipeline import TickPipeline
from claw_agent.core.portfolio import PortfolioState
from claw_agent.core.scheduler import Scheduler

__all__ = [
    "Config",
    "DecisionOrchestrator",
    "TickPipeline",
    "PortfolioState",
    "Scheduler",
]
