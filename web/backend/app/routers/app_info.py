"""Release metadata router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from appreg.registry.store import Registry

from web.backend.app.middleware.auth import get_caller, get_registry
from web.backend.app.models.api import AppInfoModel, VersionUpdate

router = APIRouter(prefix="/api/app-info", tags=["app-info"])


@router.get("", response_model=AppInfoModel, summary="Current release")
def get_app_info(reg: Registry = Depends(get_registry)):
    info = reg.get_app_info()
    return AppInfoModel(
        version=info.version,
        download_link=info.download_link,
        update_content=info.update_content,
    )


@router.put("", response_model=AppInfoModel, summary="Replace the release record")
def update_app_info(
    body: AppInfoModel,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    """Overwrite version, download link and notes together. Owner only."""
    info = reg.update_app_info(caller, body.version, body.download_link, body.update_content)
    return AppInfoModel(
        version=info.version,
        download_link=info.download_link,
        update_content=info.update_content,
    )


@router.put("/version", response_model=AppInfoModel, summary="Change only the version")
def update_version(
    body: VersionUpdate,
    caller: str = Depends(get_caller),
    reg: Registry = Depends(get_registry),
):
    info = reg.update_version(caller, body.version)
    return AppInfoModel(
        version=info.version,
        download_link=info.download_link,
        update_content=info.update_content,
    )
