from __future__ import annotations

import dataclasses
import logging
import math
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import List, Optional

import yaml
from platformdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "audiokeys"
ENV_SETTINGS = "AUDIOKEYS_SETTINGS"


@dataclass
class PlaybackSettings:
    min_volume: float = 0.0
    max_volume: float = 1.0


@dataclass
class GeneratorSettings:
    source_dirs: List[str] = field(default_factory=lambda: ["assets/audio/registries"])
    output_dir: str = "src/generated_audio_keys"
    manifest_name: str = "manifest.json"
    header: str = "Generated by audiokeys. Do not edit by hand."


@dataclass
class Settings:
    playback: PlaybackSettings = field(default_factory=PlaybackSettings)
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)

    def __post_init__(self) -> None:
        lo, hi = self.playback.min_volume, self.playback.max_volume
        if not (math.isfinite(lo) and math.isfinite(hi)) or lo > hi:
            raise ValueError(f"Invalid volume range [{lo}, {hi}]")
        if not self.generator.manifest_name.endswith(".json"):
            raise ValueError("generator.manifest_name must be a .json file name")

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        return data

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if v is None and isinstance(base.get(k), dict):
                # An empty section keeps its defaults
                continue
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @classmethod
    def _from_dict(cls, data: dict) -> "Settings":
        playback = data.get("playback") or {}
        generator = data.get("generator") or {}
        return cls(
            playback=PlaybackSettings(
                min_volume=float(playback.get("min_volume", 0.0)),
                max_volume=float(playback.get("max_volume", 1.0)),
            ),
            generator=GeneratorSettings(
                source_dirs=[str(p) for p in generator.get("source_dirs") or []],
                output_dir=str(generator.get("output_dir", GeneratorSettings.output_dir)),
                manifest_name=str(generator.get("manifest_name", GeneratorSettings.manifest_name)),
                header=str(generator.get("header", GeneratorSettings.header)),
            ),
        )

    @staticmethod
    def default_user_path() -> Path:
        """Return the user settings file, honouring the AUDIOKEYS_SETTINGS override."""
        override = os.getenv(ENV_SETTINGS)
        if override:
            return Path(override).expanduser()
        return Path(user_config_dir(APP_NAME, appauthor=False)) / "settings.yaml"

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load packaged defaults and overlay an optional user YAML file.

        Without ``user_path`` the platform config location is tried; a missing
        default file is not an error, a missing explicit file is logged.
        """
        try:
            with resources.files("audiokeys.resources").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                default_data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to dataclass defaults.")
            default_data = dataclasses.asdict(Settings())

        user_data = {}
        explicit = user_path is not None
        path = Path(user_path) if explicit else cls.default_user_path()
        if path.exists():
            user_data = cls._load_yaml(path)
            logger.info("Loaded user settings from %s", path)
        elif explicit:
            logger.warning("User settings file not found: %s", path)

        merged = cls._deep_merge(default_data, user_data)
        settings = cls._from_dict(merged)
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(dataclasses.asdict(self), f, sort_keys=False)
        logger.info("Saved settings to %s", path)
