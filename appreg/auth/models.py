"""Auth domain models for principals and roles."""

from __future__ import annotations

from enum import Enum
from typing import Optional

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Role(str, Enum):
    """Role hierarchy: owner > manager > member."""

    owner = "owner"
    manager = "manager"
    member = "member"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.owner: 30,
            Role.manager: 20,
            Role.member: 10,
        }[self]


def is_valid_principal(principal: Optional[str]) -> bool:
    """Return True if *principal* names a real identity.

    ``None``, blank strings, values with surrounding whitespace and the zero
    address are not identities.
    """
    if not isinstance(principal, str):
        return False
    if not principal or principal != principal.strip():
        return False
    return principal.lower() != ZERO_ADDRESS
