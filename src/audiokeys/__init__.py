"""Key-indexed audio clip registries and build-time key constants.

Game code plays sounds by key through a :class:`PlaybackManager` instead of
holding asset or player references, and imports generated constants instead
of typing key strings by hand.
"""

from .errors import (
    AudioKeysError,
    DuplicateKeyError,
    GenerationIOError,
    IdentifierCollisionError,
    InvalidArgumentError,
    InvalidHandleError,
    KeyNotFoundError,
    RegistrySourceError,
)
from .models import AudioAsset, AudioEntry
from .playback import (
    PlaybackManager,
    PlaybackResult,
    PlayOptions,
    get_playback_manager,
    initialize_playback,
    reset_playback_manager,
)
from .registry import ClipRegistry
from .sources import find_registry, load_registries, load_registry

__version__ = "0.1.0"

__all__ = [
    "AudioAsset",
    "AudioEntry",
    "ClipRegistry",
    "PlaybackManager",
    "PlaybackResult",
    "PlayOptions",
    "initialize_playback",
    "get_playback_manager",
    "reset_playback_manager",
    "load_registry",
    "load_registries",
    "find_registry",
    "AudioKeysError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "InvalidHandleError",
    "InvalidArgumentError",
    "IdentifierCollisionError",
    "GenerationIOError",
    "RegistrySourceError",
]
