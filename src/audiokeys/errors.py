from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class AudioKeysError(Exception):
    """Base error for audiokeys exceptions."""


class DuplicateKeyError(AudioKeysError):
    """Raised when a registry is loaded with the same key twice."""

    def __init__(self, key: str, registry: str):
        self.key = key
        self.registry = registry
        super().__init__(f"Duplicate audio key '{key}' in registry '{registry}'")


class KeyNotFoundError(AudioKeysError, KeyError):
    """Raised when a key is not present in a registry (or in any registry)."""

    def __init__(self, key: str, where: Optional[str] = None):
        self.key = key
        self.where = where
        self.message = f"Unknown audio key '{key}'" + (f" in {where}" if where else "")
        super().__init__(self.message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return self.message


class InvalidHandleError(AudioKeysError):
    """Raised for a null player handle or one that lacks the playback primitives."""


class InvalidArgumentError(AudioKeysError, ValueError):
    """Raised when a playback argument (volume, options) is out of range."""


class PlaybackBackendError(AudioKeysError):
    """Raised when a player handle's primitive itself failed."""


class RegistrationClosedError(AudioKeysError, RuntimeError):
    """Raised when registering a registry after initialization was sealed."""


class RegistrySourceError(AudioKeysError):
    """Raised when a registry file cannot be read, parsed or validated."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class GenerationError(AudioKeysError):
    """Base error for key module generation failures."""


class IdentifierCollisionError(GenerationError):
    """Raised when keys (or registry names) sanitize to the same identifier."""

    def __init__(self, identifier: str, sources: tuple[str, ...], registry: Optional[str] = None):
        self.identifier = identifier
        self.sources = sources
        self.registry = registry
        joined = ", ".join(repr(s) for s in sources)
        where = f" in registry '{registry}'" if registry else ""
        super().__init__(f"Identifier '{identifier}' is produced by more than one name{where}: {joined}")


class InvalidIdentifierError(GenerationError):
    """Raised when a name cannot be turned into a usable identifier at all."""

    def __init__(self, name: str, reason: str, registry: Optional[str] = None):
        self.name = name
        self.reason = reason
        self.registry = registry
        where = f" in registry '{registry}'" if registry else ""
        super().__init__(f"Name {name!r}{where} cannot be turned into an identifier: {reason}")


class GenerationIOError(GenerationError):
    """Raised when a generated artifact cannot be written."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write {self.path}: {reason}")


__all__ = [
    "AudioKeysError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "InvalidHandleError",
    "InvalidArgumentError",
    "PlaybackBackendError",
    "RegistrationClosedError",
    "RegistrySourceError",
    "GenerationError",
    "IdentifierCollisionError",
    "InvalidIdentifierError",
    "GenerationIOError",
]
