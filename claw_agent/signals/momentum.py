"""
Momentum Strategy

Scores each token snapshot from three rolling-window signals
(5m price change, 1m/5m volume spike, liquidity delta) into a
0–100 composite and classifies it as BUY / SELL / HOLD.
"""

import logging
from typing import List

from claw_agent.core.config import MomentumConfig
from claw_agent.data.models import Decision, MarketSnapshot, TradeAction
from claw_agent.utils.math_helpers import clamp, normalise, safe_delta, safe_ratio

logger = logging.getLogger(__name__)


class MomentumStrategy:
    """
    Quantitative momentum strategy.

    For each token computes:

        priceChange5m    = (price - price5mAgo) / price5mAgo
        volumeSpikeRatio = volume1m / volume5m
        liquidityDelta   = (liquidity - previousLiquidity) / previousLiquidity

        score = priceNorm * 40 + volumeNorm * 30 + liquidityNorm * 30

    Decision rules:
        score > 75 → BUY
        score < 40 → SELL
        else       → HOLD

    Scoring is pure: the same snapshot always yields the same decision.
    """

    name = "MomentumStrategy"

    def __init__(self, config: MomentumConfig):
        """
        Initialize momentum strategy.

        Args:
            config: Weights, caps, thresholds and base position size

        Raises:
            ValueError: if the composite weights do not sum to 100
        """
        weight_sum = config.price_weight + config.volume_weight + config.liquidity_weight
        if abs(weight_sum - 100.0) > 1e-9:
            raise ValueError(f"momentum weights must sum to 100, got {weight_sum:g}")
        self.config = config

    def evaluate(self, snapshots: List[MarketSnapshot]) -> List[Decision]:
        """Score every snapshot, preserving input order."""
        return [self.score(s) for s in snapshots]

    def score(self, snapshot: MarketSnapshot) -> Decision:
        """
        Score a single snapshot.

        Args:
            snapshot: Rolling-window market observation

        Returns:
            Decision with action, confidence, score, rationale and size
        """
        cfg = self.config

        # Raw signals (guarded division, neutral on ~0 denominators)
        price_change_5m = safe_delta(snapshot.price, snapshot.price_5m_ago)
        volume_spike_ratio = safe_ratio(snapshot.volume_1m, snapshot.volume_5m)
        liquidity_delta = safe_delta(snapshot.liquidity, snapshot.previous_liquidity)

        price_norm = normalise(price_change_5m, cfg.price_cap)
        volume_norm = normalise(volume_spike_ratio - 1.0, cfg.volume_cap - 1.0)  # ratio 1.0 is neutral
        liquidity_norm = normalise(liquidity_delta, cfg.liquidity_cap)

        raw = (
            price_norm * cfg.price_weight
            + volume_norm * cfg.volume_weight
            + liquidity_norm * cfg.liquidity_weight
        )
        momentum_score = clamp(raw, 0.0, 100.0)

        action = self._classify(momentum_score)
        confidence = momentum_score / 100.0
        size = 0.0 if action is TradeAction.HOLD else cfg.position_size * confidence

        reasoning = (
            f"priceΔ5m={price_change_5m * 100:.2f}% (norm {price_norm:.3f}) | "
            f"volSpike={volume_spike_ratio:.2f}x (norm {volume_norm:.3f}) | "
            f"liqΔ={liquidity_delta * 100:.2f}% (norm {liquidity_norm:.3f}) | "
            f"score={momentum_score:.1f} -> {action.value}"
        )
        logger.debug(f"[{self.name}] {snapshot.token.symbol}: {reasoning}")

        return Decision(
            token=snapshot.token,
            action=action,
            confidence=confidence,
            momentum_score=momentum_score,
            reason=reasoning,
            suggested_size=size,
            strategy=self.name,
        )

    def _classify(self, momentum_score: float) -> TradeAction:
        if momentum_score > self.config.buy_threshold:
            return TradeAction.BUY
        if momentum_score < self.config.sell_threshold:
            return TradeAction.SELL
        return TradeAction.HOLD
