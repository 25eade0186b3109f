import pytest

from claw_agent.core.config import MomentumConfig
from claw_agent.data.models import TradeAction
from claw_agent.signals.momentum import MomentumStrategy
from conftest import bearish_snapshot, bullish_snapshot, make_snapshot, make_token


def test_saturated_bullish_snapshot_is_full_confidence_buy(strategy):
    d = strategy.score(bullish_snapshot())

    assert d.action is TradeAction.BUY
    assert d.momentum_score == pytest.approx(100.0)
    assert d.confidence == pytest.approx(1.0)
    assert d.suggested_size == pytest.approx(0.1)
    assert d.strategy == "MomentumStrategy"


def test_bearish_snapshot_is_sell_sized_by_confidence(strategy):
    d = strategy.score(bearish_snapshot())

    # price and liquidity at -cap (0), volume ratio 0 → (−1 + 4) / 8
    assert d.momentum_score == pytest.approx(11.25)
    assert d.action is TradeAction.SELL
    assert d.confidence == pytest.approx(0.1125)
    assert d.suggested_size == pytest.approx(0.01125)


def test_reference_snapshot_signals_and_score(strategy):
    snap = make_snapshot(
        price=100, price_5m_ago=90,
        volume_1m=300, volume_5m=100,
        liquidity=200_000, previous_liquidity=190_000,
    )
    d = strategy.score(snap)

    assert "priceΔ5m=11.11%" in d.reason
    assert "volSpike=3.00x" in d.reason
    assert "liqΔ=5.26%" in d.reason
    # 0.6852*40 + 0.75*30 + 0.6316*30
    assert d.momentum_score == pytest.approx(68.8548, abs=1e-3)
    assert d.action is TradeAction.HOLD
    assert d.suggested_size == 0.0
    assert d.confidence == pytest.approx(d.momentum_score / 100)


def test_all_zero_snapshot_is_neutral_hold(strategy):
    snap = make_snapshot(
        price=0, price_1m_ago=0, price_5m_ago=0,
        volume_1m=0, volume_5m=0,
        liquidity=0, previous_liquidity=0,
    )
    d = strategy.score(snap)

    assert d.momentum_score == pytest.approx(50.0)
    assert d.action is TradeAction.HOLD
    assert d.suggested_size == 0.0
    assert "(norm 0.500)" in d.reason


def test_rationale_enumerates_signals_norms_score_and_action(strategy):
    d = strategy.score(bullish_snapshot())

    assert d.reason == (
        "priceΔ5m=30.00% (norm 1.000) | "
        "volSpike=5.00x (norm 1.000) | "
        "liqΔ=20.00% (norm 1.000) | "
        "score=100.0 -> BUY"
    )


def test_values_beyond_caps_saturate(strategy):
    d = strategy.score(bullish_snapshot(price=1_000.0, volume_1m=10_000.0, liquidity=2_000_000.0))

    assert d.momentum_score == pytest.approx(100.0)
    assert d.confidence <= 1.0


def test_scoring_is_idempotent(strategy):
    snap = make_snapshot(price=104, price_5m_ago=101, volume_1m=170, volume_5m=90,
                         liquidity=301_000, previous_liquidity=299_500)

    assert strategy.score(snap) == strategy.score(snap)


@pytest.mark.parametrize(
    "snap",
    [
        make_snapshot(),
        bullish_snapshot(),
        bearish_snapshot(),
        make_snapshot(price=1e9, price_5m_ago=1e-9, volume_1m=1e9, volume_5m=1e-9),
        make_snapshot(price=1e-9, price_5m_ago=1e9, liquidity=0, previous_liquidity=1e9),
    ],
)
def test_score_and_confidence_stay_in_range(strategy, snap):
    d = strategy.score(snap)

    assert 0.0 <= d.momentum_score <= 100.0
    assert 0.0 <= d.confidence <= 1.0
    if d.action is TradeAction.HOLD:
        assert d.suggested_size == 0.0


def test_threshold_boundaries_are_exclusive(strategy):
    assert strategy._classify(75.0) is TradeAction.HOLD
    assert strategy._classify(75.01) is TradeAction.BUY
    assert strategy._classify(40.0) is TradeAction.HOLD
    assert strategy._classify(39.99) is TradeAction.SELL


def test_evaluate_preserves_order(strategy):
    snaps = [bullish_snapshot(make_token("A")), make_snapshot(make_token("B")), bearish_snapshot(make_token("C"))]

    decisions = strategy.evaluate(snaps)

    assert [d.token.symbol for d in decisions] == ["A", "B", "C"]
    assert [d.action for d in decisions] == [TradeAction.BUY, TradeAction.HOLD, TradeAction.SELL]


def test_position_size_scales_suggested_size():
    strategy = MomentumStrategy(MomentumConfig(position_size=0.05))

    assert strategy.score(bullish_snapshot()).suggested_size == pytest.approx(0.05)


def test_weights_must_sum_to_100():
    with pytest.raises(ValueError, match="sum to 100"):
        MomentumStrategy(MomentumConfig(price_weight=50))


@pytest.mark.parametrize(
    "overrides",
    [
        {"price": float("nan")},
        {"price_5m_ago": float("inf")},
        {"volume_1m": float("inf")},
        {"volume_5m": float("nan")},
        {"liquidity": float("-inf")},
        {"previous_liquidity": float("nan")},
    ],
)
def test_non_finite_inputs_fall_back_to_neutral_signals(strategy, overrides):
    d = strategy.score(make_snapshot(**overrides))

    assert d.momentum_score == pytest.approx(50.0)
    assert d.action is TradeAction.HOLD
    assert d.suggested_size == 0.0


def test_non_finite_snapshot_does_not_affect_neighbours(strategy):
    good, bad = strategy.evaluate([bullish_snapshot(make_token("A")), make_snapshot(make_token("B"), price=float("nan"))])

    assert good.action is TradeAction.BUY
    assert bad.action is TradeAction.HOLD
