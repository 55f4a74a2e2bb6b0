"""Node directory router -- submission, review and removal of node urls."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from appreg.registry.store import Registry

from web.backend.app.middleware.auth import get_caller, get_optional_caller, get_registry
from web.backend.app.models.api import (
    BatchResultResponse,
    NodeBatchRequest,
    NodeInfoResponse,
    NodeListResponse,
    NodeRequest,
)

router = APIRouter(prefix="/api/nodes", tags=["nodes"])


def _batch_result(requested: list[str], changed: list[str]) -> BatchResultResponse:
    done = set(changed)
    return BatchResultResponse(changed=changed, skipped=[u for u in requested if u not in done])


@router.get("", response_model=NodeListResponse, summary="List approved and pending nodes")
def list_nodes(reg: Registry = Depends(get_registry)):
    """Snapshot of both lists. Order is not stable across removals."""
    return NodeListResponse(
        approved=reg.get_approved_node_urls(),
        pending=reg.get_pending_node_urls(),
        approved_count=reg.get_approved_node_count(),
        pending_count=reg.get_pending_node_count(),
    )


@router.get("/info", response_model=NodeInfoResponse, summary="Approval state of a node")
def get_node_info(
    url: str = Query(..., description="Node url"),
    reg: Registry = Depends(get_registry),
):
    record = reg.get_node_info(url)
    return NodeInfoResponse(url=record.url, is_approved=record.is_approved)


@router.post(
    "",
    response_model=NodeInfoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a node",
)
def add_node(
    body: NodeRequest,
    caller: str | None = Depends(get_optional_caller),
    reg: Registry = Depends(get_registry),
):
    """Anyone may submit. Submissions by managers are approved immediately."""
    record = reg.add_node(caller, body.url)
    return NodeInfoResponse(url=record.url, is_approved=record.is_approved)


@router.post("/approve", response_model=NodeInfoResponse, summary="Approve a pending node")
def approve_node(
    body: NodeRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    record = reg.approve_node(caller, body.url)
    return NodeInfoResponse(url=record.url, is_approved=record.is_approved)


@router.post(
    "/approve-batch",
    response_model=BatchResultResponse,
    summary="Approve many nodes, skipping unknown or approved ones",
)
def approve_nodes(
    body: NodeBatchRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    return _batch_result(body.urls, reg.approve_nodes(caller, body.urls))


@router.post("/remove", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a node")
def remove_node(
    body: NodeRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    reg.remove_node(caller, body.url)


@router.post(
    "/remove-batch",
    response_model=BatchResultResponse,
    summary="Remove many nodes, skipping unknown ones",
)
def remove_nodes(
    body: NodeBatchRequest,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    return _batch_result(body.urls, reg.remove_nodes(caller, body.urls))
