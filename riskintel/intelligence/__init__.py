# Device/IP Intelligence Module
from .device_history import DeviceHistoryStore
from .device_ip import DeviceIPIntelligence

__all__ = ["DeviceHistoryStore", "DeviceIPIntelligence"]
