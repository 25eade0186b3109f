"""
Execution Router

Turns an actionable Decision into a settlement attempt and returns an
ExecutionResult. The pipeline treats every result as terminal; transport
retries live here, inside the boundary.
"""

import logging
import time
from typing import Callable, Dict, Optional

import numpy as np
from hyperliquid.exchange import Exchange
from hyperliquid.info import Info

from claw_agent.core.config import Config
from claw_agent.data.models import Decision, ExecutionResult, TradeAction

logger = logging.getLogger(__name__)

HOLD_NOT_EXECUTABLE = "HOLD is not an executable action"


def mock_tx_hash(rng: np.random.Generator) -> str:
    """0x-prefixed 32 hex digit fake transaction hash."""
    return "0x" + rng.bytes(16).hex()


def _describe(decision: Decision) -> str:
    return (
        f"{decision.action.value} {decision.token.symbol} | "
        f"size={decision.suggested_size:.4f} | "
        f"conf={decision.confidence:.2f} | "
        f"momentum={decision.momentum_score:.1f}"
    )


class SimulatedExecutionRouter:
    """
    Mock settlement boundary.

    Simulates a gas estimate and returns a random transaction hash. Outside
    dry-run it also simulates broadcast latency.
    """

    def __init__(
        self,
        dry_run: bool = True,
        seed: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.dry_run = dry_run
        self._rng = np.random.default_rng(seed)
        self._sleep = sleep

    def execute(self, decision: Decision) -> ExecutionResult:
        if decision.action is TradeAction.HOLD:
            return ExecutionResult(success=False, error=HOLD_NOT_EXECUTABLE)

        try:
            gas_estimate = float(0.001 + self._rng.random() * 0.004)
            tx_hash = mock_tx_hash(self._rng)

            if self.dry_run:
                logger.info(f"EXECUTION | {_describe(decision)} | gas={gas_estimate:.4f} | tx={tx_hash} [DRY_RUN]")
                return ExecutionResult(success=True, tx_hash=tx_hash, gas_estimate=gas_estimate)

            # Simulate broadcast latency (20–80ms)
            self._sleep((20 + self._rng.random() * 60) / 1000.0)
            logger.info(f"EXECUTION | {_describe(decision)} | gas={gas_estimate:.4f} | tx={tx_hash}")
            return ExecutionResult(success=True, tx_hash=tx_hash, gas_estimate=gas_estimate)
        except Exception as e:
            logger.error(f"EXECUTION FAILED | {decision.action.value} {decision.token.symbol} | {e}")
            return ExecutionResult(success=False, error=str(e))


class HyperliquidExecutionRouter:
    """
    Live settlement on Hyperliquid perpetuals.

    The decision's token symbol is the Hyperliquid coin name. The suggested
    size (fraction of portfolio) is converted to a USD notional against
    account value, then to contract size at the mid price.
    BUY → market_open, SELL → market_close (reduce-only).
    """

    def __init__(
        self,
        config: Config,
        exchange: Optional[Exchange],
        info: Info,
        dry_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize execution router.

        Args:
            config: System configuration
            exchange: Hyperliquid Exchange instance (None allowed in dry-run)
            info: Hyperliquid Info client
            dry_run: Size orders but never place them
        """
        self.config = config
        self.exchange = exchange
        self.info = info
        self.dry_run = dry_run
        self.asset_map: Dict[str, int] = {}  # coin -> szDecimals
        self.api_error_count: int = 0
        self._sleep = sleep
        self._rng = np.random.default_rng()

    def execute(self, decision: Decision) -> ExecutionResult:
        if decision.action is TradeAction.HOLD:
            return ExecutionResult(success=False, error=HOLD_NOT_EXECUTABLE)

        coin = decision.token.symbol
        is_buy = decision.action is TradeAction.BUY
        try:
            mid = self._mid_price(coin)
            if mid <= 0:
                return ExecutionResult(success=False, error=f"no mid price for {coin}")

            equity = self._account_value()
            notional = decision.suggested_size * equity
            sz = self._size_from_notional(coin, notional, mid)
            if sz <= 0:
                return ExecutionResult(success=False, error=f"zero size for {coin} (notional ${notional:,.2f})")

            if self.dry_run:
                tx_hash = mock_tx_hash(self._rng)
                logger.info(f"EXECUTION | {_describe(decision)} | sz={sz} @ ~{mid} | tx={tx_hash} [DRY_RUN]")
                return ExecutionResult(success=True, tx_hash=tx_hash)

            slippage = self.config.execution.slippage
            if is_buy:
                resp = self._with_retries(self.exchange.market_open, coin, True, sz, None, slippage)
            else:
                resp = self._with_retries(self.exchange.market_close, coin, sz, None, slippage)

            result = self._parse_order_response(resp)
            if result.success:
                logger.info(f"EXECUTION | {_describe(decision)} | sz={sz} | ref={result.tx_hash}")
            else:
                logger.error(f"EXECUTION FAILED | {decision.action.value} {coin} | {result.error}")
            return result
        except Exception as e:
            logger.error(f"EXECUTION FAILED | {decision.action.value} {coin} | {e}")
            return ExecutionResult(success=False, error=str(e))

    # ------------------------
    # Helpers
    # ------------------------
    def _mid_price(self, coin: str) -> float:
        mids = self.info.all_mids() or {}
        return float(mids.get(coin, 0.0))

    def _account_value(self) -> float:
        state = self.info.user_state(self.config.hyperliquid.address)
        return float(state["marginSummary"]["accountValue"])

    def _size_decimals(self, coin: str) -> int:
        if not self.asset_map:
            meta = self.info.meta()
            self.asset_map = {u["name"]: int(u.get("szDecimals", 0)) for u in meta.get("universe", [])}
        return self.asset_map.get(coin, 0)

    def _size_from_notional(self, coin: str, abs_notional: float, px: float) -> float:
        """Convert USD notional to contract size, rounded down to szDecimals."""
        if px <= 0:
            return 0.0
        q = 10 ** self._size_decimals(coin)
        return float(np.floor(abs_notional / px * q) / q)

    @staticmethod
    def _parse_order_response(resp) -> ExecutionResult:
        if resp is None:
            return ExecutionResult(success=False, error="no open position to close")
        if resp.get("status") != "ok":
            return ExecutionResult(success=False, error=str(resp.get("response", resp)))
        statuses = resp.get("response", {}).get("data", {}).get("statuses", [])
        for s in statuses:
            if "error" in s:
                return ExecutionResult(success=False, error=str(s["error"]))
            filled = s.get("filled") or s.get("resting")
            if filled and "oid" in filled:
                return ExecutionResult(success=True, tx_hash=f"oid:{filled['oid']}")
        return ExecutionResult(success=False, error="order response carried no fill")

    def _with_retries(self, func, *args, **kwargs):
        """Call exchange function with retries/backoff and error tracking."""
        max_attempts = self.config.execution.max_attempts
        delay = 0.5
        for attempt in range(1, max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except Exception:
                self.api_error_count += 1
                if attempt == max_attempts:
                    raise
                self._sleep(delay)
                delay *= 2
