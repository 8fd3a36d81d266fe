"""Structured JSONL audit logger for relationship events."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from core.event_bus import EventBus


class AuditLogger:
    """Writes one JSON line per relationship event."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("fg.audit")

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to every event on ``event_bus``."""
        event_bus.subscribe_all(self.log)

    def log(self, event_name: str, payload: dict[str, Any]) -> None:
        """Append one JSONL audit event."""
        edge = payload.get("edge") or {}
        status = edge.get("status")
        event = {
            "timestamp": datetime.now(UTC).isoformat(),
            "event": event_name,
            "actor": str(payload.get("actor", "")),
            "other": str(payload.get("other", "")),
            "edge_id": edge.get("id"),
            "status": getattr(status, "value", status),
        }
        with self.log_path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(event, ensure_ascii=True) + "\n")
        self.logger.info(json.dumps(event, ensure_ascii=True))
