from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from hitcut.util.gain import SHAPE_FAST_END, SHAPE_NAMES, parse_shape


def default_config_dir() -> Path:
    return Path.home() / ".config" / "hitcut"


def default_config_path() -> Path:
    return default_config_dir() / "config.yaml"


@dataclass
class RenderConfig:
    """Settings for a marker render run.

    render_pattern is formatted with `index=base_index + marker_index - 1`.
    """

    base_index: int = 11
    render_pattern: str = "soft-hitwhistle{index}"
    volume_track_name: str = "Volume"  # parent folder track of everything rendered
    midi_track_names: list[str] = field(default_factory=lambda: ["Transcription 1", "Transcription 2"])
    ignored_pitches: list[int] = field(default_factory=list)  # 12 = C0
    fade_out_bars: float = 0.5
    fade_shape: int = SHAPE_FAST_END
    onset_marker_prefix: str = "NOTE_START_"
    onset_markers: bool = True
    metadata_filename: str = "note_metadata.csv"
    debug_log_filename: str = "render_script_debug.log"
    log_to_file: bool = True

    def __post_init__(self) -> None:
        if "{index" not in self.render_pattern:
            raise ValueError(f"render_pattern must contain '{{index}}': {self.render_pattern!r}")
        try:
            self.render_pattern.format(index=int(self.base_index))
        except (AttributeError, IndexError, KeyError, ValueError) as e:
            raise ValueError(f"render_pattern cannot be formatted: {self.render_pattern!r} ({e})") from e
        if self.fade_out_bars < 0:
            raise ValueError(f"fade_out_bars must be >= 0: {self.fade_out_bars}")
        self.fade_shape = parse_shape(self.fade_shape)
        for p in self.ignored_pitches:
            if not (0 <= int(p) <= 127):
                raise ValueError(f"ignored pitch out of range: {p}")
        self.ignored_pitches = [int(p) for p in self.ignored_pitches]
        self.midi_track_names = [str(n) for n in self.midi_track_names]

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_index": self.base_index,
            "render_pattern": self.render_pattern,
            "volume_track_name": self.volume_track_name,
            "midi_track_names": list(self.midi_track_names),
            "ignored_pitches": list(self.ignored_pitches),
            "fade_out_bars": self.fade_out_bars,
            "fade_shape": SHAPE_NAMES[self.fade_shape],
            "onset_marker_prefix": self.onset_marker_prefix,
            "onset_markers": self.onset_markers,
            "metadata_filename": self.metadata_filename,
            "debug_log_filename": self.debug_log_filename,
            "log_to_file": self.log_to_file,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "RenderConfig":
        base = RenderConfig()
        return RenderConfig(
            base_index=int(d.get("base_index", base.base_index)),
            render_pattern=str(d.get("render_pattern", base.render_pattern)),
            volume_track_name=str(d.get("volume_track_name", base.volume_track_name)),
            midi_track_names=list(d.get("midi_track_names", base.midi_track_names) or []),
            ignored_pitches=list(d.get("ignored_pitches", []) or []),
            fade_out_bars=float(d.get("fade_out_bars", base.fade_out_bars)),
            fade_shape=d.get("fade_shape", base.fade_shape),
            onset_marker_prefix=str(d.get("onset_marker_prefix", base.onset_marker_prefix)),
            onset_markers=bool(d.get("onset_markers", True)),
            metadata_filename=str(d.get("metadata_filename", base.metadata_filename)),
            debug_log_filename=str(d.get("debug_log_filename", base.debug_log_filename)),
            log_to_file=bool(d.get("log_to_file", True)),
        )


def load_config(path: str | Path | None = None) -> RenderConfig:
    """Load a RenderConfig from YAML (.yaml/.yml) or JSON.

    A missing default config file yields defaults; an explicit missing path is an error.
    """

    if path is None:
        p = default_config_path()
        if not p.exists():
            return RenderConfig()
    else:
        p = Path(path).expanduser()
        if not p.exists():
            raise FileNotFoundError(f"config not found: {p}")

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("config must be a mapping/object")
    return RenderConfig.from_dict(data)


def save_config(cfg: RenderConfig, path: str | Path | None = None) -> Path:
    p = Path(path) if path is not None else default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    if p.suffix.lower() == ".json":
        p.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    else:
        p.write_text(yaml.safe_dump(cfg.to_dict(), sort_keys=False), encoding="utf-8")
    return p
