"""
Decision Orchestrator

Runs every registered strategy over the tick's snapshots and gates each
actionable decision through the risk gate. Rejected decisions are
downgraded to HOLD with the rejection appended to their rationale.
"""

import logging
from typing import List, Optional, Protocol, Sequence

from claw_agent.data.models import Decision, MarketSnapshot, PortfolioView
from claw_agent.risk.gate import RiskGate

logger = logging.getLogger(__name__)


class Strategy(Protocol):
    """Scoring capability: one decision per snapshot."""

    name: str

    def score(self, snapshot: MarketSnapshot) -> Decision: ...


class DecisionOrchestrator:
    """Strategy evaluation plus risk gating. Execution happens downstream."""

    def __init__(self, strategies: Sequence[Strategy], risk_gate: RiskGate):
        """
        Initialize orchestrator.

        Args:
            strategies: Strategies registered at startup, evaluated in order
            risk_gate: Gate applied to every non-HOLD decision
        """
        if not strategies:
            raise ValueError("DecisionOrchestrator requires at least one strategy")
        self.strategies = list(strategies)
        self.risk_gate = risk_gate
        logger.info(f"[Orchestrator] Initialised with {len(self.strategies)} strategy(ies)")

    def evaluate(
        self,
        snapshots: List[MarketSnapshot],
        portfolio: PortfolioView,
        now_ms: Optional[int] = None,
    ) -> List[Decision]:
        """
        Score and gate all snapshots.

        Args:
            snapshots: This tick's market snapshots
            portfolio: Read-only portfolio view at tick start
            now_ms: Evaluation time passed to the risk gate

        Returns:
            One decision per snapshot per strategy, strategies in order
        """
        by_address = {s.token.address: s for s in snapshots}
        all_decisions: List[Decision] = []

        for strategy in self.strategies:
            logger.debug(f"[Orchestrator] Running strategy: {strategy.name}")
            decisions = self._run_strategy(strategy, snapshots)

            for d in decisions:
                logger.info(
                    f"[{strategy.name}] {d.token.symbol} -> {d.action.value} | "
                    f"score={d.momentum_score:.1f} conf={d.confidence:.2f} | {d.reason}"
                )

            all_decisions.extend(self._gate(d, by_address, portfolio, now_ms) for d in decisions)

        return all_decisions

    @staticmethod
    def _run_strategy(strategy: Strategy, snapshots: List[MarketSnapshot]) -> List[Decision]:
        """Batch `evaluate` when the strategy has one, else `score` per snapshot."""
        evaluate = getattr(strategy, "evaluate", None)
        if callable(evaluate):
            return evaluate(snapshots)
        return [strategy.score(s) for s in snapshots]

    def _gate(self, decision, by_address, portfolio, now_ms) -> Decision:
        if not decision.actionable:
            return decision

        snapshot = by_address.get(decision.token.address)
        if snapshot is None:
            logger.warning(
                f"[Orchestrator] Data consistency: no snapshot for {decision.token.symbol} "
                f"({decision.token.address}); {decision.action.value} passes ungated"
            )
            return decision

        outcome = self.risk_gate.evaluate(snapshot, decision, portfolio, now_ms=now_ms)
        if outcome.passed:
            return decision

        logger.info(f"[RiskGate] {decision.token.symbol} {decision.action.value} -> HOLD | {outcome.reason}")
        return decision.blocked(outcome.reason)
