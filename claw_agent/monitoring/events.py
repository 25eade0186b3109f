"""
Typed events published to observers once per tick:
DECISION, then TRADE_EXECUTED (per successful trade), then PORTFOLIO_UPDATE.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from claw_agent.data.models import Decision


class EventType(str, Enum):
    DECISION = "DECISION"
    TRADE_EXECUTED = "TRADE_EXECUTED"
    PORTFOLIO_UPDATE = "PORTFOLIO_UPDATE"


@dataclass(frozen=True)
class Event:
    type: EventType
    timestamp: int  # epoch ms
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"type": self.type.value, **self.payload, "timestamp": self.timestamp}


def decision_event(decisions: List[Decision], timestamp_ms: int) -> Event:
    return Event(
        type=EventType.DECISION,
        timestamp=timestamp_ms,
        payload={
            "decisions": [
                {
                    "token": d.token.symbol,
                    "action": d.action.value,
                    "confidence": d.confidence,
                    "momentumScore": d.momentum_score,
                    "allocation": d.suggested_size,
                    "reason": d.reason,
                }
                for d in decisions
            ]
        },
    )


def trade_executed_event(run_id: str, decision: Decision, tx_hash: Optional[str], timestamp_ms: int) -> Event:
    return Event(
        type=EventType.TRADE_EXECUTED,
        timestamp=timestamp_ms,
        payload={
            "runId": run_id,
            "token": decision.token.symbol,
            "action": decision.action.value,
            "allocation": decision.suggested_size,
            "confidence": decision.confidence,
            "momentumScore": decision.momentum_score,
            "txHash": tx_hash,
        },
    )


def portfolio_update_event(portfolio_summary: dict, timestamp_ms: int) -> Event:
    return Event(
        type=EventType.PORTFOLIO_UPDATE,
        timestamp=timestamp_ms,
        payload={"portfolioState": portfolio_summary},
    )
