"""Root logger setup from MonitoringConfig."""

import logging
from pathlib import Path

from claw_agent.core.config import MonitoringConfig

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(config: MonitoringConfig) -> None:
    """
    Console plus `<log_dir>/agent.log`, level from config.
    Calling it again replaces the previously installed handlers.
    """
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_claw_agent", False):
            root.removeHandler(h)
            h.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler(), logging.FileHandler(log_dir / "agent.log", encoding="utf-8")]
    for h in handlers:
        h.setFormatter(formatter)
        h._claw_agent = True
        root.addHandler(h)

    root.setLevel(getattr(logging, str(config.log_level).upper(), logging.INFO))
    # websockets logs every handshake at INFO
    logging.getLogger("websockets").setLevel(logging.WARNING)
