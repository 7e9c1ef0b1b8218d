from .base import PlayerHandle
from .memory import MemoryPlayerHandle

__all__ = ["PlayerHandle", "MemoryPlayerHandle", "ArcadePlayerHandle"]


def __getattr__(name: str):
    # arcade is heavy and optional; only import its backend on demand
    if name == "ArcadePlayerHandle":
        from .arcade_backend import ArcadePlayerHandle

        return ArcadePlayerHandle
    raise AttributeError(name)
