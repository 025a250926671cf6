"""SaintDaniels healthcare-rewards session core."""

from .app.state import SessionStore
from .shared.core.event_bus import EventBus

__all__ = ["SessionStore", "EventBus"]
