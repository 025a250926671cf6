"""
Shared Core Module
==================

Event system and configuration.
"""

# Event System
from .event_bus import EventBus, EventPayload
from . import events

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    get_config,
    ValidationLevel,
)

__all__ = [
    # Event System
    "EventBus",
    "EventPayload",
    "events",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "get_config",
    "ValidationLevel",
]
