from .bridge import BridgeProcessor

__all__ = ["BridgeProcessor"]
