from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..models import AudioAsset
    from ..playback import PlayOptions


@runtime_checkable
class PlayerHandle(Protocol):
    """Playback primitive contract supplied by the host environment.

    A handle represents one output channel/voice. It is owned by the caller;
    the playback manager only forwards calls to it. All three calls are
    expected to be synchronous and non-blocking: they hand off to the actual
    audio engine, which owns any decoding or streaming.
    """

    def play(self, asset: "AudioAsset", options: "PlayOptions") -> None:
        """Start playing ``asset`` on this channel."""

    def stop(self) -> None:
        """Stop whatever this channel is playing."""

    def set_volume(self, volume: float) -> None:
        """Set the channel volume. The manager validates the range beforehand."""
