"""Audit logging system for appreg.

Provides file-based JSON audit logging with filtering and export. Every
registry event becomes one entry. All entries are stored in
``~/.appreg/audit_logs/``.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from appreg.events import models as ev

logger = logging.getLogger(__name__)

# event kind -> (resource type, payload key naming the resource)
_RESOURCES = {
    ev.METADATA_UPDATED: ("app_info", "version"),
    ev.NODE_ADDED: ("node", "url"),
    ev.NODE_STATUS_CHANGED: ("node", "url"),
    ev.NODE_REMOVED: ("node", "url"),
    ev.OWNERSHIP_TRANSFERRED: ("owner", "new_owner"),
    ev.MANAGER_ADDED: ("manager", "manager"),
    ev.MANAGER_REMOVED: ("manager", "manager"),
}


@dataclass
class AuditEntry:
    """A single audit log entry."""

    id: str
    timestamp: str
    actor: str
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0


class AuditLogger:
    """File-based JSON audit logger.

    Events are persisted as newline-delimited JSON in daily log files stored
    under ``~/.appreg/audit_logs/``.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".appreg" / "audit_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        """Return the log file path for a given date."""
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _current_log_file(self) -> Path:
        return self._log_file_for_date(datetime.now(timezone.utc))

    def _read_all_entries(self) -> list[AuditEntry]:
        """Read every entry from all log files."""
        entries: list[AuditEntry] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                text = path.read_text(encoding="utf-8")
                for line in text.strip().splitlines():
                    if line.strip():
                        entries.append(AuditEntry(**json.loads(line)))
            except (OSError, json.JSONDecodeError, TypeError):
                logger.warning("Skipping unreadable audit file %s", path)
                continue
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def handle_event(self, event: ev.RegistryEvent) -> AuditEntry:
        """Notifier subscriber: record a registry event."""
        resource_type, key = _RESOURCES.get(event.kind, ("registry", ""))
        return self.log_event(
            actor=event.actor,
            action=event.kind,
            resource_type=resource_type,
            resource_id=str(event.payload.get(key, "")),
            details=event.payload,
            sequence=event.sequence,
        )

    def log_event(
        self,
        actor: str,
        action: str,
        resource_type: str,
        resource_id: str,
        details: Optional[dict[str, Any]] = None,
        sequence: int = 0,
    ) -> AuditEntry:
        """Record an audit event and return the created entry."""
        entry = AuditEntry(
            id=uuid.uuid4().hex[:16],
            timestamp=datetime.now(timezone.utc).isoformat(),
            actor=actor,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            sequence=sequence,
        )
        with self._current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry)) + "\n")
        return entry

    def get_events(
        self,
        *,
        actor: Optional[str] = None,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        limit: int = 200,
    ) -> list[AuditEntry]:
        """Return filtered audit events, newest first."""
        entries = self._read_all_entries()

        if actor:
            entries = [e for e in entries if e.actor == actor]
        if action:
            entries = [e for e in entries if e.action == action]
        if resource_type:
            entries = [e for e in entries if e.resource_type == resource_type]
        if resource_id:
            entries = [e for e in entries if e.resource_id == resource_id]

        entries.sort(key=lambda e: (e.timestamp, e.sequence), reverse=True)
        return entries[:limit]

    def export_events(self, fmt: str = "json", limit: int = 10000, **filters: Any) -> str:
        """Export audit events in the specified format (``json`` or ``csv``)."""
        entries = self.get_events(limit=limit, **filters)

        if fmt == "csv":
            lines = ["id,timestamp,sequence,actor,action,resource_type,resource_id"]
            for e in entries:
                lines.append(
                    f"{e.id},{e.timestamp},{e.sequence},{e.actor},{e.action},"
                    f"{e.resource_type},{e.resource_id}"
                )
            return "\n".join(lines)

        return json.dumps([asdict(e) for e in entries], indent=2)
