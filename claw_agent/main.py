"""
Main entry point for the claw agent.

Wires all components: Scheduler → Source → Strategies → Risk Gate →
Execution → Portfolio → Broadcaster / Sinks.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from claw_agent.core.config import Config
from claw_agent.core.orchestrator import DecisionOrchestrator
from claw_agent.core.pipeline import TickPipeline
from claw_agent.core.scheduler import Scheduler
from claw_agent.data.loader import HyperliquidMarketSource, SimulatedMarketSource
from claw_agent.execution.router import HyperliquidExecutionRouter, SimulatedExecutionRouter
from claw_agent.monitoring.broadcaster import EventBroadcaster
from claw_agent.monitoring.logs import setup_logging
from claw_agent.risk.gate import RiskGate
from claw_agent.signals.momentum import MomentumStrategy
from claw_agent.storage.reasoning_log import ReasoningLog
from claw_agent.storage.sqlite_sink import SqliteSink
from claw_agent.wallet.signer import build_signer

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Configuration failed validation; the agent cannot start."""


class ClawAgent:
    """
    Builds every component from config and runs the tick loop.
    """

    def __init__(self, config: Config):
        """
        Initialize agent.

        Args:
            config: Agent configuration

        Raises:
            ConfigError: if the configuration does not validate
        """
        self.config = config

        errors = config.validate()
        if errors:
            raise ConfigError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

        dry_run = config.agent.dry_run
        self.signer = build_signer(config.agent.private_key, config.agent.wallet_address)

        info = None
        if config.data.source == "hyperliquid" or config.execution.venue == "hyperliquid":
            from hyperliquid.info import Info

            info = Info(config.hyperliquid.api_url, skip_ws=True)

        if config.data.source == "hyperliquid":
            self.source = HyperliquidMarketSource(config, info)
        else:
            self.source = SimulatedMarketSource(seed=config.data.seed)

        if config.execution.venue == "hyperliquid":
            exchange = None
            if not dry_run:
                from eth_account import Account
                from hyperliquid.exchange import Exchange

                wallet = Account.from_key(config.hyperliquid.secret_key)
                exchange = Exchange(wallet, config.hyperliquid.api_url, account_address=config.hyperliquid.address)
            self.executor = HyperliquidExecutionRouter(config, exchange, info, dry_run=dry_run)
        else:
            self.executor = SimulatedExecutionRouter(dry_run=dry_run)

        # Strategies are registered explicitly here
        strategies = [MomentumStrategy(config.momentum)]
        self.orchestrator = DecisionOrchestrator(strategies, RiskGate(config.risk))

        self.sink = SqliteSink(config.storage.db_path)
        self.reasoning_log = ReasoningLog(config.monitoring.log_dir)
        self.broadcaster = EventBroadcaster(config.broadcast.host, config.broadcast.port)

        self.pipeline = TickPipeline(
            source=self.source,
            orchestrator=self.orchestrator,
            executor=self.executor,
            sink=self.sink,
            broadcaster=self.broadcaster,
            audit_log=self.reasoning_log,
            dry_run=dry_run,
        )
        self.scheduler = Scheduler(config.agent.tick_interval_ms, self.pipeline.run_tick)

        logger.info("═══════════════════════════════════════════")
        logger.info("  Claw Agent starting")
        logger.info(f"  DRY_RUN       : {dry_run}")
        logger.info(f"  Tick Interval : {config.agent.tick_interval_ms}ms")
        logger.info(f"  Wallet        : {self.signer.address}")
        logger.info(f"  Source        : {config.data.source}")
        logger.info(f"  Venue         : {config.execution.venue}")
        logger.info("═══════════════════════════════════════════")

    def run(self, max_ticks: Optional[int] = None):
        """Run the agent (blocks until stopped or `max_ticks` ticks)."""
        if self.config.broadcast.enabled:
            self.broadcaster.start()
        try:
            self.scheduler.run_forever(max_ticks=max_ticks)
        finally:
            self.shutdown()

    def shutdown(self):
        logger.info("[Main] Shutting down...")
        self.scheduler.stop()
        self.broadcaster.stop()
        self.sink.close()
        logger.info("[Main] Goodbye!")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Autonomous momentum decision loop")
    parser.add_argument("--config", type=str, default="", help="Path to YAML config file")
    parser.add_argument("--dry-run", action="store_true", help="Force dry-run (no real settlement)")
    parser.add_argument("--ticks", type=int, default=None, help="Stop after N ticks")
    args = parser.parse_args(argv)

    # Load .env if present (before Config) to populate overrides
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    config = Config.from_yaml(args.config) if args.config else Config()
    if args.dry_run:
        config.agent.dry_run = True

    setup_logging(config.monitoring)

    try:
        agent = ClawAgent(config)
    except Exception as e:
        logger.error(f"Fatal: {e}")
        sys.exit(1)

    agent.run(max_ticks=args.ticks)


if __name__ == "__main__":
    main()
