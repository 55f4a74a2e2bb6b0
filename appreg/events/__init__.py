"""Change notifications published after every committed registry mutation."""

from appreg.events.models import EVENT_KINDS, RegistryEvent
from appreg.events.notifier import EventNotifier

__all__ = [
    "EVENT_KINDS",
    "EventNotifier",
    "RegistryEvent",
]
