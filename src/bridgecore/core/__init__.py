from .settings import BridgeSettings, build_store, get_settings
from .unit import ExecutionUnit

__all__ = ["BridgeSettings", "build_store", "get_settings", "ExecutionUnit"]
