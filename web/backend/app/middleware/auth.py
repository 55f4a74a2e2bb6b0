"""Auth middleware -- FastAPI dependencies for the caller and the registry.

The hosting environment authenticates callers and forwards the principal in
the ``X-Principal`` header; this layer trusts it as given.
"""

from __future__ import annotations

import threading
from typing import Optional

from fastapi import Header, HTTPException, status

from appreg.config import load_settings
from appreg.errors import RegistryStateError
from appreg.registry.store import Registry
from appreg.runtime import open_registry

# Shared registry instance
_registry: Optional[Registry] = None
_registry_lock = threading.Lock()


def get_registry() -> Registry:
    """Return the process-wide Registry, loading it on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            try:
                _registry = open_registry(load_settings())
            except RegistryStateError as exc:
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=f"Registry not initialized: {exc.message}",
                )
        return _registry


async def get_caller(x_principal: Optional[str] = Header(None, alias="X-Principal")) -> str:
    """FastAPI dependency that returns the calling principal.

    Raises ``401 Unauthorized`` if the header is missing or blank.
    """
    if not x_principal or not x_principal.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Principal header",
        )
    return x_principal.strip()


async def get_optional_caller(
    x_principal: Optional[str] = Header(None, alias="X-Principal"),
) -> Optional[str]:
    """Same as ``get_caller`` but returns ``None`` for anonymous callers."""
    try:
        return await get_caller(x_principal=x_principal)
    except HTTPException:
        return None
