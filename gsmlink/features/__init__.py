"""
Feature managers for phone functionality.

Provides high-level managers for different phone capabilities:
- DeviceManager: Identification, PIN, echo, default settings
- NetworkManager: Signal, operator, service centre
- SMSManager: SMS messaging in PDU mode
"""

from .device_info import DeviceManager
from .network import NetworkManager
from .sms import SMSManager

__all__ = [
    "DeviceManager",
    "NetworkManager",
    "SMSManager",
]
