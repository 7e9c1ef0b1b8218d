from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union

from .errors import DuplicateKeyError, KeyNotFoundError
from .models import AudioAsset, AudioEntry

logger = logging.getLogger(__name__)

EntryLike = Union[AudioEntry, Tuple[str, AudioAsset]]


class ClipRegistry:
    """Immutable, key-indexed table of audio assets.

    A registry is built once from an ordered list of entries and is read-only
    afterwards. Keys are unique within one registry; different registries
    (e.g. one per level) have independent key spaces.

    Use :meth:`load` to build one; it rejects the whole load on a duplicate key
    instead of silently keeping one of the entries.
    """

    __slots__ = ("_name", "_entries", "_index")

    def __init__(self, name: str, entries: Tuple[AudioEntry, ...], index: Mapping[str, AudioAsset]) -> None:
        self._name = name
        self._entries = entries
        self._index = MappingProxyType(dict(index))

    @classmethod
    def load(cls, name: str, entries: Iterable[EntryLike]) -> "ClipRegistry":
        if not isinstance(name, str) or not name:
            raise ValueError("Registry name must be a non-empty string")

        ordered: list[AudioEntry] = []
        index: dict[str, AudioAsset] = {}
        for raw in entries:
            entry = raw if isinstance(raw, AudioEntry) else AudioEntry(raw[0], raw[1])
            if not isinstance(entry.key, str) or not entry.key:
                raise ValueError(f"Registry '{name}' contains an empty key")
            if not isinstance(entry.asset, AudioAsset):
                raise TypeError(f"Key '{entry.key}' in registry '{name}' does not map to an AudioAsset")
            if entry.key in index:
                raise DuplicateKeyError(entry.key, name)
            index[entry.key] = entry.asset
            ordered.append(entry)

        logger.debug("Loaded registry '%s' with %d entries", name, len(ordered))
        return cls(name, tuple(ordered), index)

    @classmethod
    def from_mapping(cls, name: str, mapping: Mapping[str, AudioAsset]) -> "ClipRegistry":
        return cls.load(name, mapping.items())

    @property
    def name(self) -> str:
        return self._name

    @property
    def entries(self) -> Tuple[AudioEntry, ...]:
        return self._entries

    def lookup(self, key: str) -> AudioAsset:
        try:
            return self._index[key]
        except KeyError as exc:
            raise KeyNotFoundError(key, f"registry '{self._name}'") from exc

    def get(self, key: str, default: Optional[AudioAsset] = None) -> Optional[AudioAsset]:
        return self._index.get(key, default)

    def keys(self) -> Tuple[str, ...]:
        return tuple(e.key for e in self._entries)

    def as_mapping(self) -> Mapping[str, AudioAsset]:
        return self._index

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AudioEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"ClipRegistry(name={self._name!r}, entries={len(self._entries)})"
