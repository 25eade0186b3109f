"""
Configuration management for the claw agent.

Nested dataclasses with defaults for every recognized option.
Supports loading from YAML/dicts and environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from typing import Literal


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class AgentConfig:
    """Loop timing and settlement mode."""

    dry_run: bool = True  # No real settlement when True
    tick_interval_ms: int = 10_000  # Milliseconds between ticks
    wallet_address: str = "0xMOCK_WALLET_ADDRESS"
    private_key: str = ""  # Signing key (from env, never from YAML in production)


@dataclass
class MomentumConfig:
    """Momentum scoring weights, caps and thresholds."""

    # Composite weights (must sum to 100)
    price_weight: float = 40.0
    volume_weight: float = 30.0
    liquidity_weight: float = 30.0

    buy_threshold: float = 75.0  # score > 75 → BUY
    sell_threshold: float = 40.0  # score < 40 → SELL

    # Normalization caps
    price_cap: float = 0.30  # ±30% 5m price move saturates
    volume_cap: float = 5.0  # 1m/5m volume ratio saturates at 5x
    liquidity_cap: float = 0.20  # ±20% liquidity delta saturates

    position_size: float = 0.1  # Base position fraction, scaled by confidence


@dataclass
class RiskConfig:
    """Deterministic risk gate thresholds."""

    max_allocation_per_token: float = 0.15
    max_total_exposure: float = 0.60
    min_liquidity_usd: float = 100_000.0
    cooldown_minutes: float = 5.0


@dataclass
class DataConfig:
    """Market snapshot source selection."""

    source: Literal["simulated", "hyperliquid"] = "simulated"
    coins: list[str] = field(default_factory=lambda: ["BTC", "ETH", "SOL"])  # Hyperliquid only
    seed: int | None = None  # Simulated source RNG seed


@dataclass
class ExecutionConfig:
    """Execution boundary selection."""

    venue: Literal["simulated", "hyperliquid"] = "simulated"
    slippage: float = 0.03  # Max slippage for market orders
    max_attempts: int = 3  # Transport retries inside the boundary


@dataclass
class StorageConfig:
    """Persistence sink."""

    db_path: str = "claw.db"


@dataclass
class BroadcastConfig:
    """WebSocket event fan-out."""

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class MonitoringConfig:
    """Logging and reasoning log output."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: str = "logs"


@dataclass
class HyperliquidConfig:
    """Hyperliquid-specific settings."""

    network: Literal["testnet", "mainnet"] = "testnet"
    address: str = ""  # Main wallet address (from env)
    secret_key: str = ""  # API wallet private key (from env)

    # API endpoint (auto-set by network)
    api_url: str = ""

    def __post_init__(self):
        """Set API URL based on network."""
        from hyperliquid.utils import constants

        if self.network == "testnet":
            self.api_url = constants.TESTNET_API_URL
        else:
            self.api_url = constants.MAINNET_API_URL


@dataclass
class Config:
    """
    Complete agent configuration.

    Environment variables (override config file):
    - DRY_RUN: "true"/"false"
    - POLL_INTERVAL_MS: tick interval in milliseconds
    - POSITION_SIZE: base position fraction
    - WALLET_ADDRESS / PRIVATE_KEY: signer identity
    - LOG_LEVEL / LOG_DIR: logging
    - HL_NETWORK / HL_ADDRESS / HL_SECRET_KEY: Hyperliquid credentials
    """

    agent: AgentConfig = field(default_factory=AgentConfig)
    momentum: MomentumConfig = field(default_factory=MomentumConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    data: DataConfig = field(default_factory=DataConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    hyperliquid: HyperliquidConfig = field(default_factory=HyperliquidConfig)

    def __post_init__(self):
        """Load environment variable overrides."""
        if os.getenv("DRY_RUN"):
            self.agent.dry_run = _env_bool(os.getenv("DRY_RUN", "true"))

        if os.getenv("POLL_INTERVAL_MS"):
            self.agent.tick_interval_ms = int(os.getenv("POLL_INTERVAL_MS", "10000"))

        if os.getenv("POSITION_SIZE"):
            self.momentum.position_size = float(os.getenv("POSITION_SIZE", "0.1"))

        if os.getenv("WALLET_ADDRESS"):
            self.agent.wallet_address = os.getenv("WALLET_ADDRESS", "")

        if os.getenv("PRIVATE_KEY"):
            self.agent.private_key = os.getenv("PRIVATE_KEY", "")

        if os.getenv("LOG_LEVEL"):
            self.monitoring.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        if os.getenv("LOG_DIR"):
            self.monitoring.log_dir = os.getenv("LOG_DIR", "logs")

        # Hyperliquid credentials from env
        if os.getenv("HL_NETWORK"):
            self.hyperliquid.network = os.getenv("HL_NETWORK", "testnet")

        if os.getenv("HL_ADDRESS"):
            self.hyperliquid.address = os.getenv("HL_ADDRESS", "")

        if os.getenv("HL_SECRET_KEY"):
            self.hyperliquid.secret_key = os.getenv("HL_SECRET_KEY", "")

        # Re-initialize to set API URL
        self.hyperliquid.__post_init__()

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load config from YAML file."""
        import yaml

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Load config from dictionary (unknown keys are ignored)."""
        from dataclasses import is_dataclass, fields

        def build(dc_type, data):
            if not is_dataclass(dc_type):
                return data
            kwargs = {}
            for f in fields(dc_type):
                if f.name in data:
                    val = data[f.name]
                    if hasattr(f.type, "__dataclass_fields__") and isinstance(val, dict):
                        kwargs[f.name] = build(f.type, val)
                    else:
                        kwargs[f.name] = val
            return dc_type(**kwargs)

        return build(cls, data)

    def validate(self) -> list[str]:
        """
        Validate configuration parameters.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        m = self.momentum
        r = self.risk

        if self.agent.tick_interval_ms <= 0:
            errors.append("agent.tick_interval_ms must be > 0")

        weight_sum = m.price_weight + m.volume_weight + m.liquidity_weight
        if abs(weight_sum - 100.0) > 1e-9:
            errors.append(f"momentum weights must sum to 100 (got {weight_sum:g})")

        if not (0.0 <= m.sell_threshold < m.buy_threshold <= 100.0):
            errors.append("momentum thresholds must satisfy 0 <= sell_threshold < buy_threshold <= 100")

        if m.price_cap <= 0 or m.liquidity_cap <= 0:
            errors.append("momentum.price_cap and momentum.liquidity_cap must be > 0")

        if m.volume_cap <= 1.0:
            errors.append("momentum.volume_cap must be > 1 (ratio of 1.0 is neutral)")

        if not (0.0 < m.position_size <= 1.0):
            errors.append("momentum.position_size must be in (0, 1]")

        if not (0.0 < r.max_allocation_per_token <= 1.0):
            errors.append("risk.max_allocation_per_token must be in (0, 1]")

        if not (0.0 < r.max_total_exposure <= 1.0):
            errors.append("risk.max_total_exposure must be in (0, 1]")

        if r.min_liquidity_usd < 0:
            errors.append("risk.min_liquidity_usd must be >= 0")

        if r.cooldown_minutes < 0:
            errors.append("risk.cooldown_minutes must be >= 0")

        if self.data.source == "hyperliquid" and not self.data.coins:
            errors.append("data.coins must list at least one coin for the hyperliquid source")

        if self.execution.venue == "hyperliquid" and not self.agent.dry_run:
            if not self.hyperliquid.address:
                errors.append("HL_ADDRESS environment variable required for live execution")
            if not self.hyperliquid.secret_key:
                errors.append("HL_SECRET_KEY environment variable required for live execution")

        if self.execution.max_attempts < 1:
            errors.append("execution.max_attempts must be >= 1")

        return errors
