"""
Reasoning Log

One JSON file per tick under `<log_dir>/reasoning/<runId>.json`, holding
the full TickAuditRecord for offline audit.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from claw_agent.data.models import TickAuditRecord

logger = logging.getLogger(__name__)


class ReasoningLog:
    """Write-once per-tick audit files."""

    def __init__(self, log_dir: Union[str, Path] = "logs"):
        self.data_dir = Path(log_dir) / "reasoning"

    def persist(self, record: TickAuditRecord) -> Optional[Path]:
        """
        Write a tick record. Failures are logged, never raised.

        Returns:
            Path written, or None on failure
        """
        path = self.data_dir / f"{record.run_id}.json"
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"[ReasoningLog] Failed to persist {record.run_id}: {e}")
            return None
        logger.info(f"[ReasoningLog] Reasoning log persisted -> {path}")
        return path

    def load(self, run_id: str) -> dict:
        """Load one tick record by run id (empty dict if absent)."""
        path = self.data_dir / f"{run_id}.json"
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def latest(self) -> dict:
        """Load the most recently written tick record."""
        files = sorted(self.data_dir.glob("*.json"), key=lambda p: p.stat().st_mtime_ns, reverse=True)
        if not files:
            return {}
        with open(files[0], "r", encoding="utf-8") as f:
            return json.load(f)
