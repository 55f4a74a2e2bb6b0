"""Role-based access control (RBAC) logic.

Role hierarchy: owner > manager > member

Every manager-gated operation goes through :func:`has_manager_capability`,
which combines the two authority sources (explicit roster and ownership).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from appreg.auth.models import Role
from appreg.errors import PermissionDenied

if TYPE_CHECKING:
    from appreg.auth.authority import IdentityAuthority

logger = logging.getLogger(__name__)


def has_manager_capability(authority: IdentityAuthority, principal: Optional[str]) -> bool:
    """True iff *principal* is in the manager set or is the owner."""
    if principal is None:
        return False
    return principal == authority.owner or principal in authority.managers


def role_of(authority: IdentityAuthority, principal: Optional[str]) -> Role:
    """Return the highest role held by *principal*."""
    if principal is not None and principal == authority.owner:
        return Role.owner
    if has_manager_capability(authority, principal):
        return Role.manager
    return Role.member


def has_permission(authority: IdentityAuthority, principal: Optional[str], required_role: Role) -> bool:
    """Check if a principal's role meets or exceeds the required role level.

    Parameters
    ----------
    authority:
        The identity authority holding the owner and manager roster.
    principal:
        The caller to check.
    required_role:
        The minimum role required.

    Returns
    -------
    bool
        True if the principal's role level >= required role level.
    """
    return role_of(authority, principal).level >= required_role.level


def require_role(authority: IdentityAuthority, principal: Optional[str], role: Role) -> None:
    """Validate that a principal has at least the given role.

    Raises :class:`~appreg.errors.PermissionDenied` if it does not.
    """
    if not has_permission(authority, principal, role):
        logger.warning("Refused %r: requires role '%s' or higher", principal, role.value)
        raise PermissionDenied(f"Requires role '{role.value}' or higher")
