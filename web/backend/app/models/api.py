"""Pydantic models for API request/response serialization.

These models mirror the appreg dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Identity models
# ---------------------------------------------------------------------------


class OwnerResponse(BaseModel):
    owner: str


class TransferOwnershipRequest(BaseModel):
    new_owner: Optional[str] = None


class ManagerRequest(BaseModel):
    principal: str


class ManagerStatusResponse(BaseModel):
    principal: str
    is_manager: bool


class ManagerListResponse(BaseModel):
    owner: str
    managers: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Release metadata models
# ---------------------------------------------------------------------------


class AppInfoModel(BaseModel):
    """Mirrors appreg.metadata.models.AppInfo."""

    version: str = ""
    download_link: str = ""
    update_content: str = ""


class VersionUpdate(BaseModel):
    version: str


# ---------------------------------------------------------------------------
# Node directory models
# ---------------------------------------------------------------------------


class NodeRequest(BaseModel):
    url: str


class NodeBatchRequest(BaseModel):
    urls: list[str] = Field(default_factory=list)


class NodeInfoResponse(BaseModel):
    """Mirrors appreg.registry.models.NodeRecord."""

    url: str
    is_approved: bool


class NodeListResponse(BaseModel):
    approved: list[str] = Field(default_factory=list)
    pending: list[str] = Field(default_factory=list)
    approved_count: int = 0
    pending_count: int = 0


class BatchResultResponse(BaseModel):
    """Urls the batch actually changed; the rest were skipped."""

    changed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
