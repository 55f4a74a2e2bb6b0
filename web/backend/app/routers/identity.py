"""Identity router -- ownership and the manager roster."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from appreg.registry.store import Registry

from web.backend.app.middleware.auth import get_caller, get_registry
from web.backend.app.models.api import (
    ManagerListResponse,
    ManagerRequest,
    ManagerStatusResponse,
    OwnerResponse,
    TransferOwnershipRequest,
)

router = APIRouter(prefix="/api", tags=["identity"])


@router.get("/owner", response_model=OwnerResponse, summary="Current owner")
def get_owner(reg: Registry = Depends(get_registry)):
    return OwnerResponse(owner=reg.get_owner())


@router.post("/owner/transfer", response_model=OwnerResponse, summary="Transfer ownership")
def transfer_ownership(
    body: TransferOwnershipRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    """Hand ownership to another principal. Owner only."""
    reg.transfer_ownership(caller, body.new_owner)
    return OwnerResponse(owner=reg.get_owner())


@router.get("/managers", response_model=ManagerListResponse, summary="List managers")
def list_managers(reg: Registry = Depends(get_registry)):
    return ManagerListResponse(owner=reg.get_owner(), managers=reg.list_managers())


@router.get(
    "/managers/{principal}",
    response_model=ManagerStatusResponse,
    summary="Check manager capability",
)
def check_manager(principal: str, reg: Registry = Depends(get_registry)):
    return ManagerStatusResponse(principal=principal, is_manager=reg.is_manager(principal))


@router.post(
    "/managers",
    response_model=ManagerStatusResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Grant manager capability",
)
def add_manager(
    body: ManagerRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    reg.add_manager(caller, body.principal)
    return ManagerStatusResponse(principal=body.principal, is_manager=True)


@router.delete(
    "/managers/{principal}",
    response_model=ManagerStatusResponse,
    summary="Revoke manager capability",
)
def remove_manager(
    principal: str,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    reg.remove_manager(caller, principal)
    return ManagerStatusResponse(principal=principal, is_manager=reg.is_manager(principal))
