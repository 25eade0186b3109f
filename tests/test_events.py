from claw_agent.monitoring.events import (
    EventType,
    decision_event,
    portfolio_update_event,
    trade_executed_event,
)
from conftest import NOW_MS, make_decision, make_token


def test_decision_event_shape():
    d = make_decision(make_token("ALPHA"), size=0.1, confidence=0.8, score=80.0, reason="r")

    payload = decision_event([d], NOW_MS).to_dict()

    assert payload == {
        "type": "DECISION",
        "decisions": [{
            "token": "ALPHA",
            "action": "BUY",
            "confidence": 0.8,
            "momentumScore": 80.0,
            "allocation": 0.1,
            "reason": "r",
        }],
        "timestamp": NOW_MS,
    }


def test_trade_executed_event_shape():
    event = trade_executed_event("run-1", make_decision(), "0xhash", NOW_MS)

    assert event.type is EventType.TRADE_EXECUTED
    payload = event.to_dict()
    assert payload["runId"] == "run-1"
    assert payload["txHash"] == "0xhash"
    assert payload["token"] == "ALPHA"
    assert payload["action"] == "BUY"


def test_portfolio_update_event_shape():
    summary = {"totalExposure": 0.1, "allocations": {"0xA": 0.1}, "positions": 1}

    assert portfolio_update_event(summary, NOW_MS).to_dict() == {
        "type": "PORTFOLIO_UPDATE",
        "portfolioState": summary,
        "timestamp": NOW_MS,
    }
