from __future__ import annotations

import logging
from pathlib import Path

import pytest

import hitcut.util.config as config_mod
from hitcut.util.config import RenderConfig, load_config, save_config
from hitcut.util.gain import SHAPE_FAST_END, SHAPE_SLOW
from hitcut.util.logs import run_log


def test_defaults() -> None:
    cfg = RenderConfig()
    assert cfg.base_index == 11
    assert cfg.render_pattern.format(index=11) == "soft-hitwhistle11"
    assert cfg.midi_track_names == ["Transcription 1", "Transcription 2"]
    assert cfg.fade_out_bars == 0.5
    assert cfg.fade_shape == SHAPE_FAST_END
    assert cfg.to_dict()["fade_shape"] == "fast_end"


def test_missing_default_file_gives_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_mod, "default_config_path", lambda: tmp_path / "config.yaml")
    assert load_config() == RenderConfig()


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_yaml_config(tmp_path: Path) -> None:
    p = tmp_path / "render.yaml"
    p.write_text(
        "base_index: 1\n"
        "render_pattern: 'kick{index:03d}'\n"
        "midi_track_names: [Drums]\n"
        "ignored_pitches: [12, 42]\n"
        "fade_shape: slow\n",
        encoding="utf-8",
    )
    cfg = load_config(p)
    assert cfg.base_index == 1
    assert cfg.render_pattern.format(index=1) == "kick001"
    assert cfg.midi_track_names == ["Drums"]
    assert cfg.ignored_pitches == [12, 42]
    assert cfg.fade_shape == SHAPE_SLOW
    assert cfg.volume_track_name == "Volume"


def test_json_round_trip(tmp_path: Path) -> None:
    cfg = RenderConfig(fade_out_bars=1.0, onset_markers=False)
    out = save_config(cfg, tmp_path / "render.json")
    assert load_config(out) == cfg


@pytest.mark.parametrize(
    "kwargs",
    [
        {"render_pattern": "no-index"},
        {"fade_out_bars": -1},
        {"fade_shape": "wobbly"},
        {"ignored_pitches": [128]},
    ],
)
def test_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RenderConfig(**kwargs)


def test_non_mapping_config(tmp_path: Path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)


def test_run_log_writes_header_and_restores_level(tmp_path: Path) -> None:
    log = logging.getLogger("hitcut")
    before = log.level
    path = tmp_path / "render_script_debug.log"
    path.write_text("old run\n", encoding="utf-8")

    with run_log(path):
        logging.getLogger("hitcut.pipeline.run").debug("Processing volume track: %s", "Volume")

    text = path.read_text(encoding="utf-8")
    assert text.startswith("Render Script Log - ")
    assert "old run" not in text
    assert "] Processing volume track: Volume" in text
    assert log.level == before


@pytest.mark.parametrize("pattern", ["hit{index}_{take}", "hit{index}{0}", "hit{index:q}"])
def test_pattern_must_format_with_index_alone(pattern: str) -> None:
    with pytest.raises(ValueError):
        RenderConfig(render_pattern=pattern)


def test_unformattable_pattern_in_file_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "render.yaml"
    p.write_text("render_pattern: 'hit{index}_{take}'\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(p)
