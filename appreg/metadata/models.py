"""Release metadata model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AppInfo:
    """The current application release. Every field defaults to ``""``."""

    version: str = ""
    download_link: str = ""
    update_content: str = ""
