"""
SaintDaniels Shared Kernel
==========================

Architecture:
- core: EventBus, event topics, configuration
- domain: Session data model and errors
- infrastructure: Auth provider and rewards ledger capabilities
"""

__version__ = "0.1.0"

__all__ = []
