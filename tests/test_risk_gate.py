import pytest

from claw_agent.core.config import RiskConfig
from claw_agent.data.models import PortfolioView, RiskOutcome, RiskRule, TradeAction
from claw_agent.risk.gate import RiskGate
from conftest import NOW_MS, make_decision, make_snapshot, make_token


def test_passes_when_all_rules_hold(gate):
    outcome = gate.evaluate(make_snapshot(), make_decision(size=0.1), PortfolioView(), now_ms=NOW_MS)

    assert outcome.passed
    assert outcome.reason is None
    assert outcome.rule is None


def test_allocation_cap_reported_first_regardless_of_other_violations(gate):
    snap = make_snapshot(liquidity=5_000)
    portfolio = PortfolioView(total_exposure=0.55, last_trade_timestamps={snap.token.address: NOW_MS})

    outcome = gate.evaluate(snap, make_decision(size=0.20), portfolio, now_ms=NOW_MS)

    assert not outcome.passed
    assert outcome.rule is RiskRule.ALLOCATION_CAP
    assert outcome.reason == "[RISK] ALPHA: allocation 20.0% > max 15% per token"


def test_projected_exposure_over_cap_fails(gate):
    outcome = gate.evaluate(make_snapshot(), make_decision(size=0.10), PortfolioView(total_exposure=0.55), now_ms=NOW_MS)

    assert outcome.rule is RiskRule.EXPOSURE_CAP
    assert "projected exposure 65.0% > max 60%" in outcome.reason


def test_projected_exposure_under_cap_passes(gate):
    outcome = gate.evaluate(make_snapshot(), make_decision(size=0.10), PortfolioView(total_exposure=0.40), now_ms=NOW_MS)

    assert outcome.passed


def test_exposure_checked_before_liquidity(gate):
    snap = make_snapshot(liquidity=10_000)

    outcome = gate.evaluate(snap, make_decision(size=0.10), PortfolioView(total_exposure=0.55), now_ms=NOW_MS)

    assert outcome.rule is RiskRule.EXPOSURE_CAP


def test_liquidity_floor(gate):
    outcome = gate.evaluate(make_snapshot(liquidity=99_999), make_decision(), PortfolioView(), now_ms=NOW_MS)

    assert outcome.rule is RiskRule.LIQUIDITY_FLOOR
    assert outcome.reason == "[RISK] ALPHA: liquidity $99,999 < min $100,000"


def test_liquidity_exactly_at_floor_passes(gate):
    assert gate.evaluate(make_snapshot(liquidity=100_000), make_decision(), PortfolioView(), now_ms=NOW_MS).passed


def test_liquidity_checked_before_cooldown(gate):
    snap = make_snapshot(liquidity=1_000)
    portfolio = PortfolioView(last_trade_timestamps={snap.token.address: NOW_MS - 1_000})

    assert gate.evaluate(snap, make_decision(), portfolio, now_ms=NOW_MS).rule is RiskRule.LIQUIDITY_FLOOR


def test_cooldown_blocks_recent_trade(gate):
    snap = make_snapshot()
    portfolio = PortfolioView(last_trade_timestamps={snap.token.address: NOW_MS - 60_000})

    outcome = gate.evaluate(snap, make_decision(), portfolio, now_ms=NOW_MS)

    assert outcome.rule is RiskRule.COOLDOWN
    assert "cooldown active, 240s remaining (min 5m between trades)" in outcome.reason


def test_cooldown_elapsed_passes(gate):
    snap = make_snapshot()
    portfolio = PortfolioView(last_trade_timestamps={snap.token.address: NOW_MS - 5 * 60_000})

    assert gate.evaluate(snap, make_decision(), portfolio, now_ms=NOW_MS).passed


def test_cooldown_only_applies_to_same_token(gate):
    other = make_token("BETA")
    portfolio = PortfolioView(last_trade_timestamps={other.address: NOW_MS})

    assert gate.evaluate(make_snapshot(), make_decision(), portfolio, now_ms=NOW_MS).passed


def test_cooldown_applies_to_sells_too(gate):
    snap = make_snapshot()
    portfolio = PortfolioView(last_trade_timestamps={snap.token.address: NOW_MS - 1})
    sell = make_decision(action=TradeAction.SELL, size=0.02)

    assert gate.evaluate(snap, sell, portfolio, now_ms=NOW_MS).rule is RiskRule.COOLDOWN


def test_same_decision_twice_within_cooldown(gate):
    snap = make_snapshot()
    decision = make_decision()

    first = gate.evaluate(snap, decision, PortfolioView(), now_ms=NOW_MS)
    assert first.passed

    # simulate the successful execution of the first proposal
    after_trade = PortfolioView(total_exposure=decision.suggested_size,
                                allocations={snap.token.address: decision.suggested_size},
                                last_trade_timestamps={snap.token.address: NOW_MS})
    second = gate.evaluate(snap, decision, after_trade, now_ms=NOW_MS + 30_000)

    assert not second.passed
    assert second.rule is RiskRule.COOLDOWN


def test_custom_thresholds():
    gate = RiskGate(RiskConfig(max_allocation_per_token=0.05, cooldown_minutes=1))
    snap = make_snapshot()

    assert gate.evaluate(snap, make_decision(size=0.06), PortfolioView(), now_ms=NOW_MS).rule is RiskRule.ALLOCATION_CAP
    portfolio = PortfolioView(last_trade_timestamps={snap.token.address: NOW_MS - 61_000})
    assert gate.evaluate(snap, make_decision(size=0.05), portfolio, now_ms=NOW_MS).passed


def test_rejections_are_logged_as_warnings(gate, caplog):
    with caplog.at_level("WARNING", logger="claw_agent.risk.gate"):
        gate.evaluate(make_snapshot(liquidity=1), make_decision(), PortfolioView(), now_ms=NOW_MS)

    assert any("LIQUIDITY_FLOOR" in r.getMessage() for r in caplog.records)


def test_risk_outcome_reason_iff_failed():
    with pytest.raises(ValueError):
        RiskOutcome(passed=True, reason="nope", rule=RiskRule.COOLDOWN)
    with pytest.raises(ValueError):
        RiskOutcome(passed=False)
    assert RiskOutcome.ok().reason is None


def test_non_finite_liquidity_fails_floor(gate):
    outcome = gate.evaluate(make_snapshot(liquidity=float("nan")), make_decision(), PortfolioView(), now_ms=NOW_MS)

    assert outcome.rule is RiskRule.LIQUIDITY_FLOOR
