"""Event data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

METADATA_UPDATED = "metadata-updated"
NODE_ADDED = "node-added"
NODE_STATUS_CHANGED = "node-status-changed"
NODE_REMOVED = "node-removed"
OWNERSHIP_TRANSFERRED = "ownership-transferred"
MANAGER_ADDED = "manager-added"
MANAGER_REMOVED = "manager-removed"

# All event kinds a registry can publish
EVENT_KINDS = [
    METADATA_UPDATED,
    NODE_ADDED,
    NODE_STATUS_CHANGED,
    NODE_REMOVED,
    OWNERSHIP_TRANSFERRED,
    MANAGER_ADDED,
    MANAGER_REMOVED,
]


@dataclass
class RegistryEvent:
    """One committed mutation, as seen by subscribers."""

    kind: str
    actor: str
    payload: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0
    emitted_at: str = ""  # ISO 8601, UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "actor": self.actor,
            "payload": dict(self.payload),
            "sequence": self.sequence,
            "emitted_at": self.emitted_at,
        }
