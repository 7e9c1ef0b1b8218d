from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

if TYPE_CHECKING:
    from ..models import AudioAsset
    from ..playback import PlayOptions


@dataclass
class MemoryPlayerHandle:
    """A deterministic, dependency-free PlayerHandle for tests and headless runs.

    - Records every primitive call in ``calls``
    - Tracks the asset currently playing, loop flag and volume
    - No real audio playback occurs
    """

    name: str = "memory"
    volume: float = 1.0
    loop: bool = False
    current: Optional["AudioAsset"] = None
    calls: List[Tuple[str, Any]] = field(default_factory=list)

    def play(self, asset: "AudioAsset", options: "PlayOptions") -> None:
        self.calls.append(("play", asset))
        self.current = asset
        self.loop = options.loop
        if options.volume is not None:
            self.volume = options.volume

    def stop(self) -> None:
        self.calls.append(("stop", None))
        self.current = None

    def set_volume(self, volume: float) -> None:
        self.calls.append(("set_volume", volume))
        self.volume = volume

    def is_playing(self) -> bool:
        return self.current is not None

    def count(self, primitive: str) -> int:
        return sum(1 for name, _ in self.calls if name == primitive)
