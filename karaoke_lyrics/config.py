from __future__ import annotations

import json
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Any, Callable

from karaoke_lyrics.timing.assign import SynthesisParams
from karaoke_lyrics.timing.pipeline import PipelineSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "KARAOKE_LYRICS_"


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "karaoke-lyrics"
    return Path.home() / ".config" / "karaoke-lyrics"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    data_dir: Path
    timeline_db_path: Path
    config_dir: Path

    # Audio analysis
    frame_ms: float
    hop_ms: float
    peak_threshold_ratio: float

    # Word timing
    peak_density_ratio: float
    default_line_ms: float
    degenerate_line_ms: float
    precision_digits: int

    # Export
    srt_last_line_ms: int

    def pipeline_settings(self) -> PipelineSettings:
        return PipelineSettings(
            synthesis=SynthesisParams(density_ratio=self.peak_density_ratio),
            threshold_ratio=self.peak_threshold_ratio,
            default_line_ms=self.default_line_ms,
            degenerate_line_ms=self.degenerate_line_ms,
            precision_digits=self.precision_digits,
        )


# key -> (cast, default); env name is KARAOKE_LYRICS_<KEY upper>
TUNABLES: dict[str, tuple[Callable[[Any], Any], Any]] = {
    "frame_ms": (float, 20.0),
    "hop_ms": (float, 10.0),
    "peak_threshold_ratio": (float, 1.2),
    "peak_density_ratio": (float, 0.5),
    "default_line_ms": (float, 10_000.0),
    "degenerate_line_ms": (float, 1_000.0),
    "precision_digits": (int, 3),
    "srt_last_line_ms": (int, 2000),
}


def _read_config_file(config_dir: Path) -> dict[str, Any]:
    cfg_path = config_dir / "config.json"
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _setting(key: str, file_data: dict[str, Any]) -> Any:
    # Priority: config.json -> KARAOKE_LYRICS_<KEY> -> default
    cast, default = TUNABLES[key]
    if key in file_data:
        try:
            return cast(file_data[key])
        except (TypeError, ValueError):
            logger.warning("Bad value for %s in config.json: %r", key, file_data[key])
    env = os.getenv(ENV_PREFIX + key.upper())
    if env:
        try:
            return cast(env)
        except ValueError:
            logger.warning("Bad value for %s%s: %r", ENV_PREFIX, key.upper(), env)
    return default


def load_config() -> AppConfig:
    # XDG base dir fallback
    xdg = os.getenv("XDG_CACHE_HOME")
    data_dir = Path(xdg) if xdg else Path.home() / ".cache"
    data_dir = data_dir / "karaoke-lyrics"

    config_dir = _config_dir()
    file_data = _read_config_file(config_dir)
    values = {key: _setting(key, file_data) for key in TUNABLES}

    return AppConfig(
        data_dir=data_dir,
        timeline_db_path=data_dir / "timelines.sqlite3",
        config_dir=config_dir,
        **values,
    )


def save_config_value(key: str, value: str) -> None:
    if key not in TUNABLES:
        raise KeyError(key)
    cast, _default = TUNABLES[key]
    typed = cast(value)

    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _read_config_file(cfg_path.parent)
    data[key] = typed
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
