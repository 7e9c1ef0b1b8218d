from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class AudioAsset:
    """Opaque reference to sound data owned by an external asset store.

    The registry and the playback manager never look inside an asset; they
    only hand it to a player handle. ``path`` is what file-backed handles load
    and ``duration`` is informational metadata in seconds.
    """

    id: str
    path: Optional[str] = None
    duration: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("AudioAsset.id must be a non-empty string")
        if self.duration is not None and self.duration < 0:
            raise ValueError(f"AudioAsset '{self.id}' has negative duration {self.duration}")

    @classmethod
    def from_raw(cls, raw: Union[str, Mapping[str, Any]]) -> "AudioAsset":
        """Build an asset from a bare id string or an ``{id, path, duration}`` mapping."""
        if isinstance(raw, str):
            return cls(id=raw)
        duration = raw.get("duration")
        return cls(
            id=str(raw["id"]),
            path=raw.get("path"),
            duration=float(duration) if duration is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id}
        if self.path is not None:
            out["path"] = self.path
        if self.duration is not None:
            out["duration"] = self.duration
        return out


@dataclass(frozen=True)
class AudioEntry:
    key: str
    asset: AudioAsset
