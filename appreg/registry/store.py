"""The registry handle.

A :class:`Registry` owns every piece of shared state (owner, manager roster,
release metadata, node lists) behind one re-entrant lock. Each public
operation is a single critical section: checks, mutation and the optional
snapshot write happen before the lock is released, so no caller observes a
half-applied change. Events are numbered inside the critical section and
handed to subscribers after it, so slow subscribers never hold up other
callers.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from appreg.auth.authority import IdentityAuthority
from appreg.errors import RegistryError, RegistryStateError
from appreg.events import models as ev
from appreg.events.notifier import EventNotifier
from appreg.metadata.models import AppInfo
from appreg.metadata.store import AppMetadataStore
from appreg.registry.directory import NodeDirectory
from appreg.registry.models import NodeRecord

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class Registry:
    """Permissioned release-metadata and node-directory registry."""

    def __init__(
        self,
        owner: str,
        notifier: Optional[EventNotifier] = None,
        state_path: str | Path | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self.notifier = notifier or EventNotifier()
        self.state_path = Path(state_path) if state_path else None
        self._authority = IdentityAuthority(owner)
        self._metadata = AppMetadataStore(self._authority)
        self._nodes = NodeDirectory(self._authority)

    # ------------------------------------------------------------------
    # Construction from / to a snapshot
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        owner: str,
        state_path: str | Path,
        notifier: Optional[EventNotifier] = None,
    ) -> Registry:
        """Start a new persisted registry. Refuses to overwrite an existing one."""
        path = Path(state_path)
        if path.exists():
            raise RegistryStateError(f"Registry state already exists at {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        registry = cls(owner, notifier=notifier, state_path=path)
        registry._save()
        logger.info("Registry created at %s (owner %s)", path, owner)
        return registry

    @classmethod
    def load(cls, state_path: str | Path, notifier: Optional[EventNotifier] = None) -> Registry:
        """Restore a registry from the snapshot at *state_path*."""
        path = Path(state_path)
        try:
            with open(path) as f:
                data = json.load(f)
        except FileNotFoundError:
            raise RegistryStateError(f"No registry state at {path}") from None
        except (OSError, json.JSONDecodeError) as exc:
            raise RegistryStateError(f"Unreadable registry state at {path}: {exc}") from exc
        return cls.from_dict(data, notifier=notifier, state_path=path)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        notifier: Optional[EventNotifier] = None,
        state_path: str | Path | None = None,
    ) -> Registry:
        if not isinstance(data, dict) or not data.get("owner"):
            raise RegistryStateError("Registry state has no owner")
        if any(not url for url in [*data.get("approved", []), *data.get("pending", [])]):
            raise RegistryStateError("Registry state contains an empty url")

        try:
            registry = cls(data["owner"], notifier=notifier, state_path=state_path)
            registry._install(data)
        except (RegistryError, TypeError, ValueError) as exc:
            raise RegistryStateError(f"Inconsistent registry state: {exc}") from exc
        return registry

    def _install(self, data: dict[str, Any]) -> None:
        """Replace every component with the state described by *data*."""
        authority = IdentityAuthority(data["owner"], data.get("managers", []))
        metadata = AppMetadataStore(authority, AppInfo(**data.get("app_info", {})))
        nodes = NodeDirectory(authority, data.get("approved", []), data.get("pending", []))
        self._authority, self._metadata, self._nodes = authority, metadata, nodes

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            info = self._metadata.get_app_info()
            return {
                "state_version": STATE_VERSION,
                "owner": self._authority.get_owner(),
                "managers": self._authority.list_managers(),
                "app_info": {
                    "version": info.version,
                    "download_link": info.download_link,
                    "update_content": info.update_content,
                },
                "approved": self._nodes.get_approved_node_urls(),
                "pending": self._nodes.get_pending_node_urls(),
            }

    def _save(self) -> None:
        """Write the snapshot to a temp file beside the target, then swap it in."""
        if self.state_path is None:
            return
        fd, tmp_name = tempfile.mkstemp(
            dir=self.state_path.parent, prefix=f".{self.state_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
            os.replace(tmp_name, self.state_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @contextmanager
    def _transaction(self) -> Iterator[list[tuple[str, Optional[str], dict[str, Any]]]]:
        """Run one mutation under the lock and collect its events.

        The body appends ``(kind, actor, payload)`` tuples. If the snapshot
        cannot be written the in-memory state is rolled back and
        :class:`RegistryStateError` is raised. Events are delivered only after
        the lock is released.
        """
        staged: list[tuple[str, Optional[str], dict[str, Any]]] = []
        with self._lock:
            before = self.to_dict() if self.state_path is not None else None
            yield staged
            try:
                self._save()
            except OSError as exc:
                self._install(before)
                logger.error("Could not write registry state to %s: %s", self.state_path, exc)
                raise RegistryStateError(
                    f"Could not write registry state to {self.state_path}: {exc}"
                ) from exc
            prepared = [
                self.notifier.prepare(kind, actor, **payload)
                for kind, actor, payload in staged
            ]
        self.notifier.deliver(prepared)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def get_owner(self) -> str:
        with self._lock:
            return self._authority.get_owner()

    def is_manager(self, principal: Optional[str]) -> bool:
        with self._lock:
            return self._authority.is_manager(principal)

    def list_managers(self) -> list[str]:
        with self._lock:
            return self._authority.list_managers()

    def transfer_ownership(self, caller: Optional[str], new_owner: Optional[str]) -> None:
        with self._transaction() as events:
            previous = self._authority.transfer_ownership(caller, new_owner)
            events.append(
                (ev.OWNERSHIP_TRANSFERRED, caller, {"previous_owner": previous, "new_owner": new_owner})
            )

    def add_manager(self, caller: Optional[str], principal: Optional[str]) -> None:
        with self._transaction() as events:
            self._authority.add_manager(caller, principal)
            events.append((ev.MANAGER_ADDED, caller, {"manager": principal}))

    def remove_manager(self, caller: Optional[str], principal: Optional[str]) -> None:
        with self._transaction() as events:
            self._authority.remove_manager(caller, principal)
            events.append((ev.MANAGER_REMOVED, caller, {"manager": principal}))

    # ------------------------------------------------------------------
    # Release metadata
    # ------------------------------------------------------------------

    def get_app_info(self) -> AppInfo:
        with self._lock:
            return self._metadata.get_app_info()

    def get_current_version(self) -> str:
        with self._lock:
            return self._metadata.get_current_version()

    def update_app_info(
        self,
        caller: Optional[str],
        version: str,
        download_link: str,
        update_content: str,
    ) -> AppInfo:
        with self._transaction() as events:
            info = self._metadata.update_app_info(caller, version, download_link, update_content)
            events.append((ev.METADATA_UPDATED, caller, _app_info_payload(info)))
        return info

    def update_version(self, caller: Optional[str], version: str) -> AppInfo:
        """Change only the version; link and notes are kept."""
        with self._transaction() as events:
            info = self._metadata.update_version(caller, version)
            events.append((ev.METADATA_UPDATED, caller, _app_info_payload(info)))
        return info

    # ------------------------------------------------------------------
    # Node directory
    # ------------------------------------------------------------------

    def add_node(self, caller: Optional[str], url: str) -> NodeRecord:
        with self._transaction() as events:
            record = self._nodes.add_node(caller, url)
            events.append((ev.NODE_ADDED, caller, {"url": url, "is_approved": record.is_approved}))
        return record

    def approve_node(self, caller: Optional[str], url: str) -> NodeRecord:
        with self._transaction() as events:
            record = self._nodes.approve_node(caller, url)
            events.append((ev.NODE_STATUS_CHANGED, caller, {"url": url, "is_approved": True}))
        return record

    def approve_nodes(self, caller: Optional[str], urls: Iterable[str]) -> list[str]:
        with self._transaction() as events:
            approved = self._nodes.approve_nodes(caller, list(urls))
            events.extend(
                (ev.NODE_STATUS_CHANGED, caller, {"url": url, "is_approved": True})
                for url in approved
            )
        return approved

    def remove_node(self, caller: Optional[str], url: str) -> None:
        with self._transaction() as events:
            self._nodes.remove_node(caller, url)
            events.append((ev.NODE_REMOVED, caller, {"url": url}))

    def remove_nodes(self, caller: Optional[str], urls: Iterable[str]) -> list[str]:
        with self._transaction() as events:
            removed = self._nodes.remove_nodes(caller, list(urls))
            events.extend((ev.NODE_REMOVED, caller, {"url": url}) for url in removed)
        return removed

    def get_node_info(self, url: str) -> NodeRecord:
        with self._lock:
            return self._nodes.get_node_info(url)

    def get_approved_node_urls(self) -> list[str]:
        with self._lock:
            return self._nodes.get_approved_node_urls()

    def get_pending_node_urls(self) -> list[str]:
        with self._lock:
            return self._nodes.get_pending_node_urls()

    def get_approved_node_count(self) -> int:
        with self._lock:
            return self._nodes.get_approved_node_count()

    def get_pending_node_count(self) -> int:
        with self._lock:
            return self._nodes.get_pending_node_count()


def _app_info_payload(info: AppInfo) -> dict[str, str]:
    return {
        "version": info.version,
        "download_link": info.download_link,
        "update_content": info.update_content,
    }
