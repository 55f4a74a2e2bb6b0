"""Error taxonomy shared by every registry component."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry failures."""

    code = "registry_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class PermissionDenied(RegistryError):
    """Caller lacks the role required for a gated mutation."""

    code = "permission_denied"


class InvalidArgument(RegistryError):
    """Empty or otherwise invalid input (empty url, null principal)."""

    code = "invalid_argument"


class AlreadyExists(RegistryError):
    """Duplicate url on add, or duplicate manager on add."""

    code = "already_exists"


class NotFound(RegistryError):
    """Operation references an untracked url or a non-manager address."""

    code = "not_found"


class AlreadyApproved(RegistryError):
    code = "already_approved"


class InvariantViolation(RegistryError):
    """Attempt to strip the owner of its manager status."""

    code = "invariant_violation"


class RegistryStateError(RegistryError):
    """A persisted snapshot could not be read or is inconsistent."""

    code = "state_error"
