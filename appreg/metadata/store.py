"""Single-record store for the current application release."""

from __future__ import annotations

import logging
from typing import Optional

from appreg.auth.authority import IdentityAuthority
from appreg.auth.models import Role
from appreg.auth.permissions import require_role
from appreg.metadata.models import AppInfo

logger = logging.getLogger(__name__)


class AppMetadataStore:
    """Holds one :class:`AppInfo`; last write wins."""

    def __init__(self, authority: IdentityAuthority, app_info: Optional[AppInfo] = None) -> None:
        self._authority = authority
        self._app_info = app_info or AppInfo()

    def get_app_info(self) -> AppInfo:
        return self._app_info

    def get_current_version(self) -> str:
        return self._app_info.version

    def update_app_info(
        self,
        caller: Optional[str],
        version: str,
        download_link: str,
        update_content: str,
    ) -> AppInfo:
        """Overwrite all three fields at once. Owner only."""
        require_role(self._authority, caller, Role.owner)
        self._app_info = AppInfo(
            version=version,
            download_link=download_link,
            update_content=update_content,
        )
        logger.info("App info updated to version %r", version)
        return self._app_info

    def update_version(self, caller: Optional[str], version: str) -> AppInfo:
        """Change only the version string. Owner only."""
        require_role(self._authority, caller, Role.owner)
        self._app_info = AppInfo(
            version=version,
            download_link=self._app_info.download_link,
            update_content=self._app_info.update_content,
        )
        logger.info("App version set to %r", version)
        return self._app_info
