"""
Hub Inspections - External Bridges

Integration layer for services this engine calls out to:
- Object storage (evidence photos -> signed read URLs)
- Notifier (critical items found when an inspection is completed)
"""

from .alerts import CriticalAlertBridge, get_alert_bridge
from .storage import StorageBridge, get_storage_bridge

__all__ = [
    "CriticalAlertBridge",
    "StorageBridge",
    "get_alert_bridge",
    "get_storage_bridge",
]
