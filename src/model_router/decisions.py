"""Persistent log of routing decisions.

Every routed message appends one JSON line to
~/.model-router/logs/decisions.jsonl. JSONL keeps the log append-only
and crash-safe: a process dying mid-write loses at most one record.

When the file grows past ``max_bytes`` it is renamed to
decisions-<timestamp>.jsonl and a fresh file is started on the next
write. Nothing in here raises into the caller; I/O failures are logged.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from model_router.config import get_home_dir
from model_router.routing.router import RoutingResult

logger = logging.getLogger(__name__)

LOG_FILE_MAX_SIZE = 10 * 1024 * 1024


@dataclass
class DecisionLog:
    """One audit record for a routing decision."""
    message_id: str
    channel: str
    complexity: str
    selected_model: str
    selection_reason: str
    total_score: float
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat())
    execution_time_ms: float = 0.0
    scores: dict[str, float] = field(default_factory=dict)
    dimension_scores: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        message_id: str,
        channel: str,
        result: RoutingResult,
        reason: str,
    ) -> "DecisionLog":
        return cls(
            message_id=message_id,
            channel=channel,
            complexity=result.tier.value,
            selected_model=result.full_model,
            selection_reason=reason,
            total_score=result.total_score,
            execution_time_ms=result.execution_time_ms,
            scores={result.model: 1.0},
            dimension_scores=dict(result.scores),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "message_id": self.message_id,
            "channel": self.channel,
            "complexity": self.complexity,
            "scores": self.scores,
            "selected_model": self.selected_model,
            "selection_reason": self.selection_reason,
            "execution_time_ms": self.execution_time_ms,
            "total_score": self.total_score,
            "dimension_scores": self.dimension_scores,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "DecisionLog":
        return cls(
            message_id=d.get("message_id", ""),
            channel=d.get("channel", ""),
            complexity=d.get("complexity", ""),
            selected_model=d.get("selected_model", ""),
            selection_reason=d.get("selection_reason", ""),
            total_score=d.get("total_score", 0.0),
            timestamp=d.get("timestamp", ""),
            execution_time_ms=d.get("execution_time_ms", 0.0),
            scores=d.get("scores", {}),
            dimension_scores=d.get("dimension_scores", {}),
        )


class DecisionLogger:
    """Append-only JSONL decision log with size-based rotation."""

    def __init__(
        self,
        enabled: bool = True,
        log_dir: Path | None = None,
        max_bytes: int = LOG_FILE_MAX_SIZE,
    ):
        self.enabled = enabled
        self.log_dir = log_dir or (get_home_dir() / "logs")
        self.log_file = self.log_dir / "decisions.jsonl"
        self.max_bytes = max_bytes

        if self.enabled:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Cannot create decision log dir {self.log_dir}: {e}")

    def log_decision(
        self,
        message_id: str,
        channel: str,
        result: RoutingResult,
        reason: str,
    ) -> DecisionLog | None:
        """Append a decision record. Returns it, or None when disabled."""
        if not self.enabled:
            return None

        record = DecisionLog.from_result(message_id, channel, result, reason)
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_dict()) + "\n")
        except OSError as e:
            logger.error(f"Failed to write decision log: {e}")
        return record

    def get_recent_decisions(self, limit: int = 20) -> list[DecisionLog]:
        """Return up to ``limit`` most recent records, oldest first."""
        if not self.log_file.exists():
            return []

        try:
            with open(self.log_file, encoding="utf-8") as f:
                lines = [line for line in f.read().splitlines() if line.strip()]
            if limit <= 0:
                return []
            return [DecisionLog.from_dict(json.loads(line)) for line in lines[-limit:]]
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read decision log: {e}")
            return []

    def rotate_log_if_needed(self) -> Path | None:
        """Archive the log once it exceeds ``max_bytes``.

        Returns the archive path when a rotation happened.
        """
        if not self.log_file.exists():
            return None

        try:
            if self.log_file.stat().st_size > self.max_bytes:
                return self._rotate()
        except OSError as e:
            logger.error(f"Failed to rotate decision log: {e}")
        return None

    def _rotate(self) -> Path:
        stamp = datetime.now(timezone.utc).isoformat().replace(":", "-").replace(".", "-")
        archive = self.log_dir / f"decisions-{stamp}.jsonl"
        counter = 1
        while archive.exists():
            archive = self.log_dir / f"decisions-{stamp}-{counter}.jsonl"
            counter += 1
        self.log_file.rename(archive)
        logger.info(f"Rotated decision log to {archive.name}")
        return archive

    def list_archives(self) -> list[Path]:
        return sorted(self.log_dir.glob("decisions-*.jsonl"))
