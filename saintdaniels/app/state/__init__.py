"""Session state management.

Architecture:
- SessionStore: owns user, catalog and goals; publishes snapshots on the EventBus
"""

from .store import SessionStore

__all__ = ["SessionStore"]
