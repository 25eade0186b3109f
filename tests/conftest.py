from datetime import datetime, timezone

import pytest

from claw_agent.core.config import MomentumConfig, RiskConfig
from claw_agent.core.orchestrator import DecisionOrchestrator
from claw_agent.core.pipeline import TickPipeline
from claw_agent.data.models import (
    Decision,
    ExecutionResult,
    MarketSnapshot,
    Token,
    TradeAction,
)
from claw_agent.risk.gate import RiskGate
from claw_agent.signals.momentum import MomentumStrategy

NOW_MS = 1_760_000_000_000


def make_token(symbol="ALPHA", address=None):
    return Token(
        address=address or f"0xNAD_TOKEN_{symbol}",
        symbol=symbol,
        name=f"{symbol.title()} Token",
        decimals=18,
        total_supply=1_000_000,
        created_at=datetime(2025, 12, 1, tzinfo=timezone.utc),
    )


def make_snapshot(
    token=None,
    price=100.0,
    price_1m_ago=100.0,
    price_5m_ago=100.0,
    volume_1m=100.0,
    volume_5m=100.0,
    liquidity=200_000.0,
    previous_liquidity=200_000.0,
    captured_at_ms=NOW_MS,
):
    return MarketSnapshot(
        token=token or make_token(),
        price=price,
        price_1m_ago=price_1m_ago,
        price_5m_ago=price_5m_ago,
        volume_1m=volume_1m,
        volume_5m=volume_5m,
        liquidity=liquidity,
        previous_liquidity=previous_liquidity,
        captured_at_ms=captured_at_ms,
    )


def bullish_snapshot(token=None, **overrides):
    """Every signal saturated upwards: score 100, BUY."""
    values = dict(
        price=130.0, price_5m_ago=100.0,
        volume_1m=500.0, volume_5m=100.0,
        liquidity=240_000.0, previous_liquidity=200_000.0,
    )
    values.update(overrides)
    return make_snapshot(token=token, **values)


def bearish_snapshot(token=None, **overrides):
    """Price and liquidity saturated downwards, volume dried up: SELL."""
    values = dict(
        price=70.0, price_5m_ago=100.0,
        volume_1m=0.0, volume_5m=100.0,
        liquidity=160_000.0, previous_liquidity=200_000.0,
    )
    values.update(overrides)
    return make_snapshot(token=token, **values)


def make_decision(token=None, action=TradeAction.BUY, size=0.1, confidence=0.8, score=80.0, reason="test"):
    return Decision(
        token=token or make_token(),
        action=action,
        confidence=confidence,
        momentum_score=score,
        reason=reason,
        suggested_size=0.0 if action is TradeAction.HOLD else size,
        strategy="Test",
    )


class FakeClock:
    def __init__(self, now_ms=NOW_MS):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance(self, ms):
        self.now_ms += ms


class StaticSource:
    def __init__(self, snapshots):
        self.snapshots = list(snapshots)
        self.calls = 0

    def fetch(self):
        self.calls += 1
        return list(self.snapshots)


class RecordingBroadcaster:
    def __init__(self, fail_on=None):
        self.events = []
        self.fail_on = fail_on

    def publish(self, event):
        if self.fail_on is not None and event.type == self.fail_on:
            raise ConnectionError(f"broadcast of {event.type.value} failed")
        self.events.append(event)

    @property
    def types(self):
        return [e.type.value for e in self.events]


class RecordingSink:
    def __init__(self):
        self.decisions = []
        self.executions = []
        self.ticks = []

    def save_decision(self, decision):
        self.decisions.append(decision)

    def save_execution(self, execution):
        self.executions.append(execution)

    def save_tick(self, record):
        self.ticks.append(record)


class ScriptedExecutor:
    """Returns (or raises) scripted outcomes in order; succeeds once exhausted."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def execute(self, decision):
        self.calls.append(decision)
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return ExecutionResult(success=True, tx_hash=f"0x{len(self.calls):032x}")


@pytest.fixture
def momentum_config():
    return MomentumConfig()


@pytest.fixture
def risk_config():
    return RiskConfig()


@pytest.fixture
def strategy(momentum_config):
    return MomentumStrategy(momentum_config)


@pytest.fixture
def gate(risk_config):
    return RiskGate(risk_config)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def build_pipeline(strategy, gate, clock):
    def _build(snapshots, executor=None, broadcaster=None, sink=None, dry_run=True):
        return TickPipeline(
            source=StaticSource(snapshots),
            orchestrator=DecisionOrchestrator([strategy], gate),
            executor=executor or ScriptedExecutor(),
            sink=sink or RecordingSink(),
            broadcaster=broadcaster or RecordingBroadcaster(),
            dry_run=dry_run,
            clock=clock,
        )

    return _build
