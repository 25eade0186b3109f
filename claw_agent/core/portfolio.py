"""
Portfolio State

In-memory running record of per-token allocation and last-trade time.
Owned and mutated exclusively by the tick pipeline; everything else
reads a PortfolioView.
"""

import logging
import math
from types import MappingProxyType
from typing import Mapping

from claw_agent.data.models import Decision, PortfolioView, TradeAction

logger = logging.getLogger(__name__)


class PortfolioState:
    """
    Single-writer portfolio record.

    `total_exposure` is derived: it is recomputed from the allocation map
    after every mutation and can never be set directly.
    """

    def __init__(self):
        self._allocations: dict[str, float] = {}
        self._last_trade_timestamps: dict[str, int] = {}
        self._total_exposure: float = 0.0

    @property
    def total_exposure(self) -> float:
        return self._total_exposure

    @property
    def allocations(self) -> Mapping[str, float]:
        return MappingProxyType(self._allocations)

    @property
    def last_trade_timestamps(self) -> Mapping[str, int]:
        return MappingProxyType(self._last_trade_timestamps)

    def allocation(self, address: str) -> float:
        return self._allocations.get(address, 0.0)

    def active_positions(self) -> int:
        """Number of tokens with a positive allocation."""
        return sum(1 for v in self._allocations.values() if v > 0)

    def apply_execution(self, decision: Decision, now_ms: int) -> None:
        """
        Apply a successfully executed decision.

        BUY adds the suggested size, SELL subtracts it (clamped at 0).
        The last-trade timestamp is set regardless of direction.

        Args:
            decision: Executed BUY/SELL decision
            now_ms: Execution time (epoch ms)

        Raises:
            ValueError: for HOLD decisions
        """
        addr = decision.token.address
        size = decision.suggested_size
        current = self._allocations.get(addr, 0.0)

        if decision.action is TradeAction.BUY:
            self._allocations[addr] = current + size
        elif decision.action is TradeAction.SELL:
            self._allocations[addr] = max(current - size, 0.0)
        else:
            raise ValueError(f"cannot apply {decision.action.value} decision to portfolio")

        self._last_trade_timestamps[addr] = now_ms
        self.recompute_exposure()
        logger.debug(
            f"[Portfolio] {decision.action.value} {decision.token.symbol} "
            f"alloc {current:.4f} -> {self._allocations[addr]:.4f}, exposure={self._total_exposure:.4f}"
        )

    def recompute_exposure(self) -> float:
        """Recompute total exposure from the allocation map."""
        self._total_exposure = math.fsum(self._allocations.values())
        return self._total_exposure

    def view(self) -> PortfolioView:
        """Read-only copy for the orchestrator and risk gate."""
        return PortfolioView(
            total_exposure=self._total_exposure,
            allocations=self._allocations,
            last_trade_timestamps=self._last_trade_timestamps,
        )

    def summary(self) -> dict:
        """PORTFOLIO_UPDATE payload."""
        return {
            "totalExposure": self._total_exposure,
            "allocations": dict(self._allocations),
            "positions": self.active_positions(),
        }
