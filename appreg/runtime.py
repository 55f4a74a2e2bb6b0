"""Wiring shared by the CLI and the web API.

Builds the event notifier with the audit log and webhook subscribers
attached, and opens the persisted registry named by the settings.
"""

from __future__ import annotations

from appreg.config import Settings
from appreg.events.notifier import EventNotifier
from appreg.registry.store import Registry
from appreg.security.audit_log import AuditLogger
from appreg.security.webhook_manager import WebhookManager


def build_notifier(settings: Settings) -> EventNotifier:
    notifier = EventNotifier()
    notifier.subscribe(AuditLogger(settings.audit_dir).handle_event)
    notifier.subscribe(
        WebhookManager(settings.webhook_dir, timeout=settings.webhook_timeout).handle_event
    )
    return notifier


def open_registry(settings: Settings) -> Registry:
    """Load the registry at ``settings.state_path`` with subscribers attached."""
    return Registry.load(settings.state_path, notifier=build_notifier(settings))


def create_registry(settings: Settings, owner: str) -> Registry:
    return Registry.create(owner, settings.state_path, notifier=build_notifier(settings))
