"""
Tick Pipeline

One full pass per tick: monitor → think (score + risk gate) → broadcast
decisions → execute → update portfolio → broadcast trades/portfolio → audit.

The pipeline owns the PortfolioState; nothing else writes to it.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from claw_agent.core.orchestrator import DecisionOrchestrator
from claw_agent.core.portfolio import PortfolioState
from claw_agent.data.loader import MarketSnapshotSource
from claw_agent.data.models import (
    Decision,
    ExecutionRecord,
    ExecutionResult,
    TickAuditRecord,
)
from claw_agent.monitoring.events import (
    Event,
    decision_event,
    portfolio_update_event,
    trade_executed_event,
)
from claw_agent.monitoring.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class ExecutionBoundary(Protocol):
    def execute(self, decision: Decision) -> ExecutionResult: ...


class PersistenceSink(Protocol):
    def save_decision(self, decision: Decision) -> None: ...

    def save_execution(self, execution: ExecutionRecord) -> None: ...

    def save_tick(self, record: TickAuditRecord) -> None: ...


class Broadcaster(Protocol):
    def publish(self, event: Event) -> None: ...


class AuditLog(Protocol):
    def persist(self, record: TickAuditRecord): ...


def _now_ms() -> int:
    return int(time.time() * 1000)


class TickPipeline:
    """
    Core agent tick.

    Decisions are dispatched one at a time in orchestrator order. A failed
    execution never rolls back earlier mutations in the same tick.
    """

    def __init__(
        self,
        source: MarketSnapshotSource,
        orchestrator: DecisionOrchestrator,
        executor: ExecutionBoundary,
        sink: PersistenceSink,
        broadcaster: Broadcaster,
        audit_log: Optional[AuditLog] = None,
        dry_run: bool = True,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            source: Market snapshot source
            orchestrator: Strategy + risk gate runner
            executor: Execution boundary
            sink: Persistence sink (decisions, executions, ticks)
            broadcaster: Event fan-out
            audit_log: Per-tick reasoning log
            dry_run: Recorded on every audit record
            metrics: Counters (a fresh collector if omitted)
            clock: Epoch-ms clock (injectable for tests)
        """
        self.source = source
        self.orchestrator = orchestrator
        self.executor = executor
        self.sink = sink
        self.broadcaster = broadcaster
        self.audit_log = audit_log
        self.dry_run = dry_run
        self.metrics = metrics or MetricsCollector()
        self.clock = clock
        self.portfolio = PortfolioState()

    def run_tick(self) -> Optional[TickAuditRecord]:
        """
        Execute one tick. Never raises: tick-level failures are logged and
        the tick is abandoned.

        Returns:
            The tick's audit record, or None if the tick failed before
            producing decisions
        """
        run_id = str(uuid.uuid4())
        started = time.perf_counter()
        logger.info(f"── Tick {run_id} ──────────────────────")

        tokens_evaluated = 0
        decisions: Optional[List[Decision]] = None
        executions: List[ExecutionRecord] = []
        try:
            # 1. Monitor
            snapshots = self.source.fetch()
            tokens_evaluated = len(snapshots)
            logger.info(f"[Tick] Fetched {tokens_evaluated} tokens with rolling-window data")

            # 2. Think: strategies + risk gate against the tick-start portfolio
            decisions = self.orchestrator.evaluate(snapshots, self.portfolio.view(), now_ms=self.clock())
            self.metrics.record_decisions(decisions)
            logger.info(f"[Tick] Produced {len(decisions)} decisions")

            # 3. Broadcast + persist decisions
            self.broadcaster.publish(decision_event(decisions, self.clock()))
            for d in decisions:
                self.sink.save_decision(d)

            # 4–5. Execute actionable decisions sequentially
            actionable = [d for d in decisions if d.actionable]
            if not actionable:
                logger.info("[Tick] No actionable decisions, all HOLD.")
            for decision in actionable:
                executions.append(self._dispatch(run_id, decision))

            ok = sum(1 for e in executions if e.success)
            logger.info(f"[Tick] Executed {ok}/{len(executions)} trade(s)")

            # 6. Portfolio update
            exposure = self.portfolio.recompute_exposure()
            summary = self.portfolio.summary()
            logger.info(
                f"[Tick] Portfolio: exposure={exposure * 100:.1f}%, positions={summary['positions']}"
            )
            self.broadcaster.publish(portfolio_update_event(summary, self.clock()))

            # 7. Audit
            record = self._audit(run_id, tokens_evaluated, decisions, executions)
            self.metrics.record_tick(time.perf_counter() - started, ok=True)
            logger.info(f"[Tick] Metrics: {self.metrics.snapshot()}")
            return record

        except Exception as e:
            logger.exception(f"[Tick] Agent loop error: {e}")
            self.metrics.record_tick(time.perf_counter() - started, ok=False)
            if decisions is None:
                return None
            # Decisions exist: the partial tick is still audited
            try:
                return self._audit(run_id, tokens_evaluated, decisions, executions)
            except Exception as audit_err:
                logger.error(f"[Tick] Failed to persist partial audit for {run_id}: {audit_err}")
                return None

    def _dispatch(self, run_id: str, decision: Decision) -> ExecutionRecord:
        """Send one decision to the boundary and apply it on success."""
        try:
            result = self.executor.execute(decision)
        except Exception as e:
            logger.error(f"[Tick] Execution raised for {decision.action.value} {decision.token.symbol}: {e}")
            result = ExecutionResult(success=False, error=str(e))

        record = ExecutionRecord.from_result(decision, result)
        self.metrics.record_execution(record)

        if not result.success:
            logger.warning(
                f"[Tick] Execution failed for {decision.action.value} {decision.token.symbol}: {result.error}"
            )
            return record

        now = self.clock()
        self.portfolio.apply_execution(decision, now)
        self.broadcaster.publish(trade_executed_event(run_id, decision, result.tx_hash, now))
        self.sink.save_execution(record)
        return record

    def _audit(self, run_id, tokens_evaluated, decisions, executions) -> TickAuditRecord:
        record = TickAuditRecord(
            run_id=run_id,
            timestamp=datetime.now(timezone.utc),
            tokens_evaluated=tokens_evaluated,
            decisions=tuple(decisions),
            executions=tuple(executions),
            dry_run=self.dry_run,
        )
        self.sink.save_tick(record)
        if self.audit_log is not None:
            self.audit_log.persist(record)
        return record
