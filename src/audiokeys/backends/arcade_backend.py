from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

try:
    import arcade
except Exception:  # pragma: no cover - Import errors handled at runtime where used
    arcade = None  # type: ignore

if TYPE_CHECKING:
    from ..models import AudioAsset
    from ..playback import PlayOptions

logger = logging.getLogger(__name__)


class ArcadePlayerHandle:
    """PlayerHandle backed by arcade.Sound and the pyglet Player it returns.

    One handle drives one voice: starting a new asset stops the previous one.
    Sounds are loaded lazily from ``AudioAsset.path`` and cached per path for
    the lifetime of the handle. ``sound_factory`` lets callers swap how sounds
    are constructed (it defaults to ``arcade.Sound``).
    """

    def __init__(self, *, streaming: bool = False, sound_factory: Optional[Callable[..., Any]] = None) -> None:
        if sound_factory is None:
            if arcade is None:  # pragma: no cover - runtime guard
                raise RuntimeError("arcade is not available. Install 'arcade' to use ArcadePlayerHandle.")
            sound_factory = arcade.Sound
        self._sound_factory = sound_factory
        self._streaming = streaming
        self._sounds: Dict[str, Any] = {}
        self._sound: Any = None
        self._player: Any = None
        self._volume = 1.0

    def play(self, asset: "AudioAsset", options: "PlayOptions") -> None:
        if not asset.path:
            raise ValueError(f"Asset '{asset.id}' has no path to load")
        if self._player is not None:
            self.stop()
        if options.volume is not None:
            self._volume = options.volume
        sound = self._sounds.get(asset.path)
        if sound is None:
            sound = self._sound_factory(asset.path, streaming=self._streaming)
            self._sounds[asset.path] = sound
        # arcade 2.6+: Sound.play returns a pyglet.media.Player
        self._sound = sound
        self._player = sound.play(volume=self._volume, loop=options.loop)
        logger.debug("Arcade play: asset=%s path=%s vol=%.3f loop=%s", asset.id, asset.path, self._volume, options.loop)

    def stop(self) -> None:
        if self._player is None:
            return
        try:
            self._sound.stop(self._player)
        finally:
            self._player = None
            self._sound = None
        logger.debug("Arcade stop called")

    def set_volume(self, volume: float) -> None:
        self._volume = float(volume)
        if self._player is not None:
            self._player.volume = self._volume
        logger.debug("Arcade set_volume: %.3f", self._volume)

    def is_playing(self) -> bool:
        return self._player is not None
