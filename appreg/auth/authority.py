"""Identity authority: the single owner and the explicit manager roster.

The owner is never required to be in the roster; ownership alone grants
manager capability (see :func:`appreg.auth.permissions.has_manager_capability`).
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from appreg.auth.models import Role, is_valid_principal
from appreg.auth.permissions import has_manager_capability, require_role
from appreg.errors import AlreadyExists, InvalidArgument, InvariantViolation, NotFound

logger = logging.getLogger(__name__)


class IdentityAuthority:
    """Tracks the owner principal and the manager set."""

    def __init__(self, owner: str, managers: Optional[Iterable[str]] = None) -> None:
        if not is_valid_principal(owner):
            raise InvalidArgument(f"Invalid owner identity: {owner!r}")
        self.owner: str = owner
        # The constructing principal is also the first explicit manager.
        self.managers: set[str] = set(managers) if managers is not None else {owner}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_manager(self, principal: Optional[str]) -> bool:
        return has_manager_capability(self, principal)

    def is_owner(self, principal: Optional[str]) -> bool:
        return principal is not None and principal == self.owner

    def get_owner(self) -> str:
        return self.owner

    def list_managers(self) -> list[str]:
        """Return the explicit roster, sorted. The owner appears only if granted."""
        return sorted(self.managers)

    # ------------------------------------------------------------------
    # Mutations (owner-gated)
    # ------------------------------------------------------------------

    def transfer_ownership(self, caller: Optional[str], new_owner: Optional[str]) -> str:
        """Hand ownership to *new_owner*. Returns the previous owner."""
        require_role(self, caller, Role.owner)
        if not is_valid_principal(new_owner):
            raise InvalidArgument(f"Invalid new owner identity: {new_owner!r}")
        previous = self.owner
        self.owner = new_owner
        logger.info("Ownership transferred from %s to %s", previous, new_owner)
        return previous

    def add_manager(self, caller: Optional[str], principal: Optional[str]) -> None:
        require_role(self, caller, Role.owner)
        if not is_valid_principal(principal):
            raise InvalidArgument(f"Invalid manager identity: {principal!r}")
        if principal in self.managers:
            raise AlreadyExists(f"'{principal}' is already a manager")
        self.managers.add(principal)
        logger.info("Manager added: %s", principal)

    def remove_manager(self, caller: Optional[str], principal: Optional[str]) -> None:
        require_role(self, caller, Role.owner)
        # Checked before membership so the owner is always refused the same way.
        if principal == self.owner:
            raise InvariantViolation("The owner cannot be removed from the manager set")
        if principal not in self.managers:
            raise NotFound(f"'{principal}' is not a manager")
        self.managers.discard(principal)
        logger.info("Manager removed: %s", principal)
