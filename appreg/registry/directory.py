"""Admission-controlled directory of node endpoints.

Each tracked url lives in exactly one of two unordered lists, approved or
pending. The record map doubles as the existence index: a url is a key of
``_records`` iff it sits in one of the lists.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from appreg.auth.authority import IdentityAuthority
from appreg.auth.models import Role
from appreg.auth.permissions import require_role
from appreg.errors import AlreadyApproved, AlreadyExists, InvalidArgument, NotFound
from appreg.registry.models import NodeRecord, SwapList

logger = logging.getLogger(__name__)


class NodeDirectory:
    """Pending/approved node lists with role-gated transitions."""

    def __init__(
        self,
        authority: IdentityAuthority,
        approved: Optional[Iterable[str]] = None,
        pending: Optional[Iterable[str]] = None,
    ) -> None:
        self._authority = authority
        self._approved = SwapList(approved)
        self._pending = SwapList(pending)
        self._records: dict[str, NodeRecord] = {}
        for url in self._approved:
            self._records[url] = NodeRecord(url=url, is_approved=True)
        for url in self._pending:
            if url in self._records:
                raise ValueError(f"{url!r} is both approved and pending")
            self._records[url] = NodeRecord(url=url, is_approved=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _promote(self, url: str) -> NodeRecord:
        self._pending.remove(url)
        self._approved.append(url)
        record = NodeRecord(url=url, is_approved=True)
        self._records[url] = record
        return record

    def _erase(self, url: str) -> NodeRecord:
        record = self._records.pop(url)
        holder = self._approved if record.is_approved else self._pending
        holder.remove(url)
        return record

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_node(self, caller: Optional[str], url: str) -> NodeRecord:
        """Track *url*. Submissions from managers are approved immediately."""
        if not url:
            raise InvalidArgument("Node url must not be empty")
        if url in self._records:
            raise AlreadyExists(f"Node '{url}' already exists")

        approved = self._authority.is_manager(caller)
        (self._approved if approved else self._pending).append(url)
        record = NodeRecord(url=url, is_approved=approved)
        self._records[url] = record
        logger.info("Node added: %s (approved=%s, by %s)", url, approved, caller)
        return record

    def approve_node(self, caller: Optional[str], url: str) -> NodeRecord:
        require_role(self._authority, caller, Role.manager)
        record = self._records.get(url)
        if record is None:
            raise NotFound(f"Node '{url}' not found")
        if record.is_approved:
            raise AlreadyApproved(f"Node '{url}' is already approved")
        record = self._promote(url)
        logger.info("Node approved: %s (by %s)", url, caller)
        return record

    def approve_nodes(self, caller: Optional[str], urls: Iterable[str]) -> list[str]:
        """Approve every pending url in *urls*; skip unknown or approved ones.

        Returns the urls actually approved, in input order.
        """
        require_role(self._authority, caller, Role.manager)
        approved: list[str] = []
        for url in urls:
            record = self._records.get(url)
            if record is None or record.is_approved:
                logger.debug("Batch approve skipped %r", url)
                continue
            self._promote(url)
            approved.append(url)
        logger.info("Batch approved %d node(s) (by %s)", len(approved), caller)
        return approved

    def remove_node(self, caller: Optional[str], url: str) -> NodeRecord:
        require_role(self._authority, caller, Role.manager)
        if url not in self._records:
            raise NotFound(f"Node '{url}' not found")
        record = self._erase(url)
        logger.info("Node removed: %s (by %s)", url, caller)
        return record

    def remove_nodes(self, caller: Optional[str], urls: Iterable[str]) -> list[str]:
        """Remove every tracked url in *urls*; unknown ones are skipped.

        Returns the urls actually removed, in input order.
        """
        require_role(self._authority, caller, Role.manager)
        removed: list[str] = []
        for url in urls:
            if url not in self._records:
                logger.debug("Batch remove skipped %r", url)
                continue
            self._erase(url)
            removed.append(url)
        logger.info("Batch removed %d node(s) (by %s)", len(removed), caller)
        return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node_info(self, url: str) -> NodeRecord:
        record = self._records.get(url)
        if record is None:
            raise NotFound(f"Node '{url}' not found")
        return record

    def exists(self, url: str) -> bool:
        return url in self._records

    def get_approved_node_urls(self) -> list[str]:
        """Snapshot of approved urls. Order changes after removals."""
        return self._approved.snapshot()

    def get_pending_node_urls(self) -> list[str]:
        """Snapshot of pending urls. Order changes after removals."""
        return self._pending.snapshot()

    def get_approved_node_count(self) -> int:
        return len(self._approved)

    def get_pending_node_count(self) -> int:
        return len(self._pending)
