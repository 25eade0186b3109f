"""
Risk Gate

Deterministic pass/fail check for a proposed (non-HOLD) decision
against four hard portfolio rules. No probabilistic logic.
"""

import logging
import math
import time
from typing import Optional

from claw_agent.core.config import RiskConfig
from claw_agent.data.models import (
    Decision,
    MarketSnapshot,
    PortfolioView,
    RiskOutcome,
    RiskRule,
)

logger = logging.getLogger(__name__)


class RiskGate:
    """
    Evaluates a decision against, in this fixed order:

    1. Per-token allocation cap
    2. Total portfolio exposure cap (projected)
    3. Minimum liquidity floor
    4. Per-token cooldown timer

    The first violated rule short-circuits and is returned as the outcome.
    """

    def __init__(self, config: RiskConfig):
        """
        Initialize risk gate.

        Args:
            config: Risk thresholds
        """
        self.config = config

    def evaluate(
        self,
        snapshot: MarketSnapshot,
        decision: Decision,
        portfolio: PortfolioView,
        now_ms: Optional[int] = None,
    ) -> RiskOutcome:
        """
        Gate a proposed trade.

        Args:
            snapshot: Market snapshot for the decision's token
            decision: Proposed non-HOLD decision
            portfolio: Read-only portfolio view
            now_ms: Evaluation time (epoch ms); defaults to wall clock

        Returns:
            RiskOutcome naming the first violated rule, or a pass
        """
        cfg = self.config
        addr = snapshot.token.address
        symbol = snapshot.token.symbol
        alloc = decision.suggested_size

        # Rule 1: per-token allocation cap
        if alloc > cfg.max_allocation_per_token:
            reason = (
                f"[RISK] {symbol}: allocation {alloc * 100:.1f}% > "
                f"max {cfg.max_allocation_per_token * 100:.0f}% per token"
            )
            return self._reject(RiskRule.ALLOCATION_CAP, reason)

        # Rule 2: total exposure cap on the projected exposure
        projected = portfolio.total_exposure + alloc
        if projected > cfg.max_total_exposure:
            reason = (
                f"[RISK] {symbol}: projected exposure {projected * 100:.1f}% > "
                f"max {cfg.max_total_exposure * 100:.0f}%"
            )
            return self._reject(RiskRule.EXPOSURE_CAP, reason)

        # Rule 3: liquidity floor (non-finite liquidity never clears it)
        if not math.isfinite(snapshot.liquidity) or snapshot.liquidity < cfg.min_liquidity_usd:
            reason = (
                f"[RISK] {symbol}: liquidity ${snapshot.liquidity:,.0f} < "
                f"min ${cfg.min_liquidity_usd:,.0f}"
            )
            return self._reject(RiskRule.LIQUIDITY_FLOOR, reason)

        # Rule 4: cooldown since last successful trade
        last_trade = portfolio.last_trade_timestamps.get(addr)
        if last_trade is not None:
            now = int(time.time() * 1000) if now_ms is None else now_ms
            elapsed_ms = now - last_trade
            cooldown_ms = cfg.cooldown_minutes * 60_000
            if elapsed_ms < cooldown_ms:
                remaining_sec = math.ceil((cooldown_ms - elapsed_ms) / 1000)
                reason = (
                    f"[RISK] {symbol}: cooldown active, {remaining_sec}s remaining "
                    f"(min {cfg.cooldown_minutes:g}m between trades)"
                )
                return self._reject(RiskRule.COOLDOWN, reason)

        logger.debug(f"[RiskGate] {symbol}: all checks passed (alloc={alloc * 100:.1f}%)")
        return RiskOutcome.ok()

    @staticmethod
    def _reject(rule: RiskRule, reason: str) -> RiskOutcome:
        logger.warning(f"[RiskGate] {rule.value}: {reason}")
        return RiskOutcome.fail(rule, reason)
