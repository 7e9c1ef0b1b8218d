from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .backends.base import PlayerHandle
from .errors import (
    AudioKeysError,
    InvalidArgumentError,
    InvalidHandleError,
    KeyNotFoundError,
    PlaybackBackendError,
    RegistrationClosedError,
)
from .models import AudioAsset
from .registry import ClipRegistry
from .settings import PlaybackSettings, Settings

logger = logging.getLogger(__name__)


class PlayOptions(BaseModel):
    """Per-call playback options forwarded to the player handle."""

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    loop: bool = Field(False, description="Loop the clip until stopped")
    volume: Optional[float] = Field(None, description="Channel volume to apply before playing")


OptionsLike = Union[PlayOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class PlaybackResult:
    """Outcome of a playback call. Truthy when the handle was driven successfully."""

    ok: bool
    key: Optional[str] = None
    asset: Optional[AudioAsset] = None
    error: Optional[AudioKeysError] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, key: Optional[str] = None, asset: Optional[AudioAsset] = None) -> "PlaybackResult":
        return cls(ok=True, key=key, asset=asset)

    @classmethod
    def failure(cls, error: AudioKeysError, key: Optional[str] = None) -> "PlaybackResult":
        return cls(ok=False, key=key, error=error)


class PlaybackManager:
    """Resolves audio keys across registries and drives caller-owned player handles.

    Key guarantees:
    - Registries are searched in registration order; the first one that
      contains a key wins and later registries are shadowed for that key.
    - ``play``/``stop``/``set_volume`` never raise for content or caller
      mistakes (unknown key, bad handle, bad volume) nor for exceptions thrown
      by the handle. They log and return a failed :class:`PlaybackResult`.
    - Volumes outside the configured range are rejected, not clamped.

    Registration is meant for the initialization phase. ``seal()`` ends it;
    afterwards the registry list is read-only and ``register`` raises.
    Calls are expected from one logical thread (the host's frame loop).
    """

    def __init__(
        self,
        registries: Optional[Iterable[ClipRegistry]] = None,
        *,
        settings: Optional[PlaybackSettings] = None,
    ) -> None:
        self._settings = settings or PlaybackSettings()
        self._registries: list[ClipRegistry] = []
        self._sealed = False
        for registry in registries or ():
            self.register(registry)

    # ---------------------- Initialization ----------------------
    def register(self, registry: ClipRegistry) -> None:
        if not isinstance(registry, ClipRegistry):
            raise TypeError(f"Expected ClipRegistry, got {type(registry).__name__}")
        if self._sealed:
            raise RegistrationClosedError(f"Cannot register '{registry.name}': manager is sealed")
        self._registries.append(registry)
        logger.debug("Registered audio registry '%s' at position %d", registry.name, len(self._registries) - 1)

    def seal(self) -> None:
        self._sealed = True
        logger.info(
            "Playback manager sealed with %d registries: %s",
            len(self._registries),
            ", ".join(r.name for r in self._registries) or "<none>",
        )

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def registries(self) -> Tuple[ClipRegistry, ...]:
        return tuple(self._registries)

    @property
    def volume_range(self) -> Tuple[float, float]:
        return self._settings.min_volume, self._settings.max_volume

    def registry(self, name: str) -> ClipRegistry:
        for r in self._registries:
            if r.name == name:
                return r
        raise LookupError(f"No registry named '{name}' is registered")

    # ---------------------- Resolution ----------------------
    def resolve(self, key: str) -> AudioAsset:
        for r in self._registries:
            asset = r.get(key)
            if asset is not None:
                return asset
        raise KeyNotFoundError(key, "any registered registry")

    # ---------------------- Runtime API ----------------------
    def play(self, key: str, handle: Optional[PlayerHandle], options: OptionsLike = None) -> PlaybackResult:
        """Resolve ``key`` and play it on ``handle``. Never raises."""
        try:
            self._check_handle(handle)
            if not isinstance(key, str):
                raise InvalidArgumentError(f"Audio key must be a string, got {type(key).__name__}")
            asset = self.resolve(key)
            opts = self._coerce_options(options)
        except (InvalidHandleError, KeyNotFoundError, InvalidArgumentError) as e:
            logger.warning("Audio play skipped for key '%s': %s", key, e)
            return PlaybackResult.failure(e, key=key)

        try:
            handle.play(asset, opts)  # type: ignore[union-attr]
        except Exception as e:  # noqa: BLE001
            logger.exception("Player handle failed while playing '%s' (asset=%s)", key, asset.id)
            return PlaybackResult.failure(PlaybackBackendError(f"play failed for '{key}': {e}"), key=key)
        logger.debug("Playing '%s' -> asset %s", key, asset.id)
        return PlaybackResult.success(key=key, asset=asset)

    def stop(self, handle: Optional[PlayerHandle]) -> PlaybackResult:
        try:
            self._check_handle(handle)
        except InvalidHandleError as e:
            logger.warning("Audio stop skipped: %s", e)
            return PlaybackResult.failure(e)
        try:
            handle.stop()  # type: ignore[union-attr]
        except Exception as e:  # noqa: BLE001
            logger.exception("Player handle failed while stopping")
            return PlaybackResult.failure(PlaybackBackendError(f"stop failed: {e}"))
        return PlaybackResult.success()

    def set_volume(self, handle: Optional[PlayerHandle], volume: float) -> PlaybackResult:
        try:
            self._check_handle(handle)
            value = self._check_volume(volume)
        except (InvalidHandleError, InvalidArgumentError) as e:
            logger.warning("Audio set_volume skipped: %s", e)
            return PlaybackResult.failure(e)
        try:
            handle.set_volume(value)  # type: ignore[union-attr]
        except Exception as e:  # noqa: BLE001
            logger.exception("Player handle failed while setting volume to %s", value)
            return PlaybackResult.failure(PlaybackBackendError(f"set_volume failed: {e}"))
        return PlaybackResult.success()

    # ---------------------- Helpers ----------------------
    @staticmethod
    def _check_handle(handle: Any) -> None:
        if handle is None:
            raise InvalidHandleError("Player handle is None")
        if not isinstance(handle, PlayerHandle):
            raise InvalidHandleError(
                f"{type(handle).__name__} does not implement play(asset, options), stop() and set_volume(volume)"
            )

    def _check_volume(self, volume: Any) -> float:
        lo, hi = self.volume_range
        if isinstance(volume, bool) or not isinstance(volume, (int, float)):
            raise InvalidArgumentError(f"Volume must be a number, got {type(volume).__name__}")
        value = float(volume)
        if math.isnan(value) or not (lo <= value <= hi):
            raise InvalidArgumentError(f"Volume {volume!r} is outside [{lo}, {hi}]")
        return value

    def _coerce_options(self, options: OptionsLike) -> PlayOptions:
        if options is None:
            return PlayOptions()
        if isinstance(options, PlayOptions):
            opts = options
        else:
            try:
                opts = PlayOptions.model_validate(dict(options))
            except (ValidationError, TypeError, ValueError) as e:
                raise InvalidArgumentError(f"Invalid play options: {e}") from e
        if opts.volume is not None:
            self._check_volume(opts.volume)
        return opts


# ---------------------- Process-wide instance ----------------------
_default_manager: Optional[PlaybackManager] = None


def initialize_playback(
    registries: Iterable[ClipRegistry],
    *,
    settings: Optional[Settings] = None,
    seal: bool = True,
) -> PlaybackManager:
    """Create the process-wide manager from an explicit registry list.

    Call once during application startup. Calling it again replaces the
    previous instance (e.g. after a full content reload while nothing plays).
    """
    global _default_manager
    cfg = settings.playback if settings is not None else None
    manager = PlaybackManager(registries, settings=cfg)
    if seal:
        manager.seal()
    _default_manager = manager
    return manager


def get_playback_manager() -> PlaybackManager:
    if _default_manager is None:
        raise RuntimeError("Playback manager is not initialized; call initialize_playback() first")
    return _default_manager


def reset_playback_manager() -> None:
    global _default_manager
    _default_manager = None
