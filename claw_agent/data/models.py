"""
Value records flowing through the decision pipeline.

Token, MarketSnapshot, Decision, RiskOutcome, ExecutionResult,
ExecutionRecord, TickAuditRecord and PortfolioView. All are frozen;
`to_dict()` produces the camelCase shape consumed by sinks and observers.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class RiskRule(str, Enum):
    """The four risk gate rules, in evaluation order."""

    ALLOCATION_CAP = "ALLOCATION_CAP"
    EXPOSURE_CAP = "EXPOSURE_CAP"
    LIQUIDITY_FLOOR = "LIQUIDITY_FLOOR"
    COOLDOWN = "COOLDOWN"


@dataclass(frozen=True)
class Token:
    """Immutable token identity. `address` is the unique key."""

    address: str
    symbol: str
    name: str
    decimals: int = 18
    total_supply: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
            "totalSupply": self.total_supply,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Rolling-window observation for one token at one tick.

    Produced fresh by the snapshot source; never mutated by the pipeline.
    """

    token: Token
    price: float
    price_1m_ago: float
    price_5m_ago: float
    volume_1m: float
    volume_5m: float
    liquidity: float  # USD
    previous_liquidity: float  # USD, one tick prior
    captured_at_ms: int

    @property
    def address(self) -> str:
        return self.token.address


@dataclass(frozen=True)
class Decision:
    """
    Scoring output for one token.

    Raises:
        ValueError: if a HOLD carries a non-zero size or ranges are violated
    """

    token: Token
    action: TradeAction
    confidence: float  # 0–1
    momentum_score: float  # 0–100
    reason: str
    suggested_size: float  # fraction of portfolio (0–1)
    strategy: str = ""

    def __post_init__(self):
        if self.action is TradeAction.HOLD and self.suggested_size != 0:
            raise ValueError(f"HOLD decision for {self.token.symbol} must have suggested_size 0")
        if not (0.0 <= self.confidence <= 1.0):
            raise ValueError(f"confidence out of range: {self.confidence}")
        if not (0.0 <= self.momentum_score <= 100.0):
            raise ValueError(f"momentum_score out of range: {self.momentum_score}")
        if not (0.0 <= self.suggested_size <= 1.0):
            raise ValueError(f"suggested_size out of range: {self.suggested_size}")

    @property
    def actionable(self) -> bool:
        return self.action is not TradeAction.HOLD

    def blocked(self, reason: str) -> "Decision":
        """Derive a HOLD decision, keeping the original rationale."""
        return replace(
            self,
            action=TradeAction.HOLD,
            suggested_size=0.0,
            reason=f"{self.reason} || RISK BLOCKED: {reason}",
        )

    def to_dict(self) -> dict:
        return {
            "token": self.token.to_dict(),
            "action": self.action.value,
            "confidence": self.confidence,
            "momentumScore": self.momentum_score,
            "reason": self.reason,
            "suggestedSize": self.suggested_size,
            "strategy": self.strategy,
        }


@dataclass(frozen=True)
class RiskOutcome:
    """Risk gate verdict. `reason`/`rule` are set if and only if not passed."""

    passed: bool
    reason: Optional[str] = None
    rule: Optional[RiskRule] = None

    def __post_init__(self):
        if self.passed and (self.reason is not None or self.rule is not None):
            raise ValueError("passing RiskOutcome must not carry a reason")
        if not self.passed and (not self.reason or self.rule is None):
            raise ValueError("failing RiskOutcome requires a reason and a rule")

    @classmethod
    def ok(cls) -> "RiskOutcome":
        return cls(passed=True)

    @classmethod
    def fail(cls, rule: RiskRule, reason: str) -> "RiskOutcome":
        return cls(passed=False, reason=reason, rule=rule)


@dataclass(frozen=True)
class ExecutionResult:
    """Raw result returned by an execution boundary for a single trade."""

    success: bool
    tx_hash: Optional[str] = None
    gas_estimate: Optional[float] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ExecutionRecord:
    """Audit record for one dispatched decision."""

    decision: Decision
    executed_at: datetime
    tx_hash: Optional[str]
    success: bool
    error: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_result(cls, decision: Decision, result: ExecutionResult) -> "ExecutionRecord":
        return cls(
            decision=decision,
            executed_at=datetime.now(timezone.utc),
            tx_hash=result.tx_hash,
            success=result.success,
            error=result.error,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "decision": self.decision.to_dict(),
            "executedAt": self.executed_at.isoformat(),
            "txHash": self.tx_hash,
            "success": self.success,
            "error": self.error,
        }


@dataclass(frozen=True)
class TickAuditRecord:
    """Write-once reasoning entry covering one tick."""

    run_id: str
    timestamp: datetime
    tokens_evaluated: int
    decisions: tuple[Decision, ...]
    executions: tuple[ExecutionRecord, ...]
    dry_run: bool

    def to_dict(self) -> dict:
        return {
            "runId": self.run_id,
            "timestamp": self.timestamp.isoformat(),
            "tokensEvaluated": self.tokens_evaluated,
            "decisions": [d.to_dict() for d in self.decisions],
            "executions": [e.to_dict() for e in self.executions],
            "dryRun": self.dry_run,
        }


@dataclass(frozen=True)
class PortfolioView:
    """Read-only portfolio snapshot handed to the risk gate."""

    total_exposure: float = 0.0
    allocations: Mapping[str, float] = field(default_factory=dict)
    last_trade_timestamps: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "allocations", MappingProxyType(dict(self.allocations)))
        object.__setattr__(self, "last_trade_timestamps", MappingProxyType(dict(self.last_trade_timestamps)))
