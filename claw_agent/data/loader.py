"""
Market Snapshot Sources

Each source exposes `fetch() -> List[MarketSnapshot]` and returns a stable
set of token identities across calls so rolling-window fields line up.

- SimulatedMarketSource: random-walk rolling cache for a fixed token set
- HyperliquidMarketSource: mids, 1m candles and asset contexts from the
  Hyperliquid Info endpoint
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import numpy as np
from hyperliquid.info import Info

from claw_agent.core.config import Config
from claw_agent.data.models import MarketSnapshot, Token

logger = logging.getLogger(__name__)


class MarketSnapshotSource(Protocol):
    def fetch(self) -> List[MarketSnapshot]: ...


@dataclass(frozen=True)
class TokenDefinition:
    """Static token plus the base levels its random walk centres on."""

    token: Token
    base_price: float
    base_volume: float
    base_liquidity: float


DEFAULT_TOKENS: Tuple[TokenDefinition, ...] = (
    TokenDefinition(
        token=Token(
            address="0xNAD_TOKEN_ALPHA",
            symbol="ALPHA",
            name="Alpha Token",
            decimals=18,
            total_supply=1_000_000,
            created_at=datetime(2025, 12, 1, tzinfo=timezone.utc),
        ),
        base_price=0.42,
        base_volume=2_100,
        base_liquidity=420_000,
    ),
    TokenDefinition(
        token=Token(
            address="0xNAD_TOKEN_BETA",
            symbol="BETA",
            name="Beta Token",
            decimals=18,
            total_supply=5_000_000,
            created_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        ),
        base_price=0.087,
        base_volume=970,
        base_liquidity=435_000,
    ),
    TokenDefinition(
        token=Token(
            address="0xNAD_TOKEN_GAMMA",
            symbol="GAMMA",
            name="Gamma Token",
            decimals=18,
            total_supply=10_000_000,
            created_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
        ),
        base_price=0.015,
        base_volume=210,
        base_liquidity=150_000,
    ),
)


@dataclass(frozen=True)
class _Window:
    price: float
    price_1m_ago: float
    price_5m_ago: float
    volume_1m: float
    volume_5m: float
    liquidity: float
    previous_liquidity: float


class SimulatedMarketSource:
    """
    In-memory rolling cache driven by a seedable random walk.

    Each fetch advances every token by one tick:
      1. New spot price jittered around the current price (±5%).
      2. Rolling windows shift: current → 1m slot, 1m → 5m slot.
      3. Volume and liquidity jittered around their base levels, with the
         previous values shifted into the prior slots.
    """

    def __init__(
        self,
        tokens: Tuple[TokenDefinition, ...] = DEFAULT_TOKENS,
        seed: Optional[int] = None,
        latency: Tuple[float, float] = (0.03, 0.10),
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            tokens: Token definitions (stable across fetches)
            seed: RNG seed for reproducible walks
            latency: Simulated fetch latency range in seconds
            sleep: Sleep function (injectable for tests)
        """
        self.tokens = tokens
        self.latency = latency
        self._rng = np.random.default_rng(seed)
        self._sleep = sleep
        self._cache: Dict[str, _Window] = {}

    def fetch(self) -> List[MarketSnapshot]:
        logger.debug(f"[MarketSource] Fetching {len(self.tokens)} tokens...")
        lo, hi = self.latency
        if hi > 0:
            self._sleep(lo + self._rng.random() * (hi - lo))

        now_ms = int(time.time() * 1000)
        results: List[MarketSnapshot] = []
        for d in self.tokens:
            addr = d.token.address
            if addr not in self._cache:
                self._cache[addr] = _Window(
                    d.base_price, d.base_price, d.base_price,
                    d.base_volume, d.base_volume,
                    d.base_liquidity, d.base_liquidity,
                )
            window = self._advance(self._cache[addr], d)
            self._cache[addr] = window
            results.append(
                MarketSnapshot(
                    token=d.token,
                    price=window.price,
                    price_1m_ago=window.price_1m_ago,
                    price_5m_ago=window.price_5m_ago,
                    volume_1m=window.volume_1m,
                    volume_5m=window.volume_5m,
                    liquidity=window.liquidity,
                    previous_liquidity=window.previous_liquidity,
                    captured_at_ms=now_ms,
                )
            )

        logger.debug(
            "[MarketSource] Fetched: " + ", ".join(f"{s.token.symbol}@${s.price:.4f}" for s in results)
        )
        return results

    def _jitter(self, base: float, pct: float) -> float:
        return max(base * (1 + (self._rng.random() - 0.5) * pct), 0.0)

    def _advance(self, w: _Window, d: TokenDefinition) -> _Window:
        return _Window(
            price=self._jitter(w.price, 0.10),
            price_1m_ago=w.price,
            price_5m_ago=w.price_1m_ago,
            volume_1m=self._jitter(d.base_volume, 0.40),
            volume_5m=w.volume_1m,
            liquidity=self._jitter(d.base_liquidity, 0.08),
            previous_liquidity=w.liquidity,
        )


class HyperliquidMarketSource:
    """
    Builds snapshots for configured coins from the Hyperliquid Info endpoint.

    - price: all_mids (falls back to the asset context mid/mark)
    - price 1m / 5m ago: closes of the last completed 1m candles
    - volume_1m: USD notional of the last completed minute
    - volume_5m: mean per-minute USD notional over the last five completed
      minutes (keeps the 1m/5m ratio neutral at 1.0)
    - liquidity: open interest × price; previous liquidity is the value
      observed on the prior fetch
    """

    CANDLE_MS = 60_000

    def __init__(self, config: Config, info: Optional[Info] = None):
        self.config = config
        self.coins = list(config.data.coins)
        self.info = info or Info(config.hyperliquid.api_url, skip_ws=True)
        self._tokens: Dict[str, Token] = {}
        self._previous_liquidity: Dict[str, float] = {}

    def fetch(self) -> List[MarketSnapshot]:
        now_ms = int(time.time() * 1000)
        meta, asset_ctxs = self.get_meta_and_asset_ctxs()
        universe = meta.get("universe", [])
        ctx_by_coin = {
            universe[i]["name"]: (universe[i], asset_ctxs[i])
            for i in range(min(len(universe), len(asset_ctxs)))
        }
        mids = self.info.all_mids() or {}

        snapshots: List[MarketSnapshot] = []
        for coin in self.coins:
            if coin not in ctx_by_coin:
                logger.warning(f"[MarketSource] {coin} not listed in Hyperliquid universe; skipping")
                continue
            asset, ctx = ctx_by_coin[coin]

            price = float(mids.get(coin) or ctx.get("midPx") or ctx.get("markPx") or 0.0)
            candles = self.get_candles(coin, now_ms - 7 * self.CANDLE_MS, now_ms)
            closed = [c for c in candles if c["t"] + self.CANDLE_MS <= now_ms]

            if closed:
                price_1m_ago = closed[-1]["c"]
                price_5m_ago = closed[-5]["c"] if len(closed) >= 5 else closed[0]["c"]
                last_five = closed[-5:]
                volume_1m = closed[-1]["v"] * closed[-1]["c"]
                volume_5m = float(np.mean([c["v"] * c["c"] for c in last_five]))
            else:
                logger.warning(f"[MarketSource] {coin}: no closed 1m candles; using spot for history")
                price_1m_ago = price_5m_ago = price
                volume_1m = volume_5m = 0.0

            liquidity = float(ctx.get("openInterest", 0.0)) * price
            previous_liquidity = self._previous_liquidity.get(coin, liquidity)
            self._previous_liquidity[coin] = liquidity

            snapshots.append(
                MarketSnapshot(
                    token=self._token(coin, asset),
                    price=price,
                    price_1m_ago=price_1m_ago,
                    price_5m_ago=price_5m_ago,
                    volume_1m=volume_1m,
                    volume_5m=volume_5m,
                    liquidity=liquidity,
                    previous_liquidity=previous_liquidity,
                    captured_at_ms=now_ms,
                )
            )

        logger.debug(f"[MarketSource] Fetched {len(snapshots)}/{len(self.coins)} Hyperliquid snapshots")
        return snapshots

    def _token(self, coin: str, asset: Dict) -> Token:
        token = self._tokens.get(coin)
        if token is None:
            token = Token(
                address=coin,
                symbol=coin,
                name=f"{coin}-PERP",
                decimals=int(asset.get("szDecimals", 0)),
            )
            self._tokens[coin] = token
        return token

    def get_candles(self, coin: str, start_ms: int, end_ms: int) -> List[Dict]:
        """
        Fetch 1m candles, normalized to {t, o, h, l, c, v} and sorted by time.
        """
        resp = self.info.candles_snapshot(coin, "1m", int(start_ms), int(end_ms))
        candles = resp if isinstance(resp, list) else resp.get("candles", [])

        normalized: List[Dict] = []
        for c in candles:
            if isinstance(c, dict):
                normalized.append({
                    "t": int(c.get("t")),
                    "o": float(c.get("o")),
                    "h": float(c.get("h")),
                    "l": float(c.get("l")),
                    "c": float(c.get("c")),
                    "v": float(c.get("v", 0.0)),
                })
            elif isinstance(c, list) and len(c) >= 6:
                # Assume [t, o, h, l, c, v]
                normalized.append({
                    "t": int(c[0]),
                    "o": float(c[1]),
                    "h": float(c[2]),
                    "l": float(c[3]),
                    "c": float(c[4]),
                    "v": float(c[5]),
                })
        normalized.sort(key=lambda x: x["t"])
        return normalized

    def get_meta_and_asset_ctxs(self) -> Tuple[Dict, List[Dict]]:
        """
        Fetch universe metadata and asset contexts.

        Returns:
            Tuple of (meta, asset_contexts)
        """
        resp = self.info.meta_and_asset_ctxs()
        # Official shape: [meta, assetCtxs]
        if isinstance(resp, list) and len(resp) >= 2:
            return resp[0] or {}, resp[1] or []
        if isinstance(resp, dict):
            return resp.get("meta") or {}, resp.get("assetCtxs") or []
        raise RuntimeError("Unexpected response for metaAndAssetCtxs")
