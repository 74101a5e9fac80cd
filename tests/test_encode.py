from __future__ import annotations

import subprocess
import wave
from pathlib import Path

import pytest

import hitcut.audio.encode as encode_mod
import hitcut.audio.render as render_mod
from hitcut.audio.encode import encode_render, envelope_expression, envelope_value_at
from hitcut.audio.render import OfflineRenderer
from hitcut.model.types import Envelope, EnvelopePoint, NoteEvent, Project, RenderRequest, Track, TrackItem
from hitcut.util.gain import SHAPE_FAST_END, SHAPE_LINEAR, SHAPE_SQUARE


def test_envelope_value_follows_shape() -> None:
    lin = [EnvelopePoint(1.0, 1.0, SHAPE_LINEAR), EnvelopePoint(3.0, 0.0, SHAPE_LINEAR)]
    assert envelope_value_at(lin, 0.0) == 1.0
    assert envelope_value_at(lin, 2.0) == pytest.approx(0.5)
    assert envelope_value_at(lin, 9.0) == 0.0

    fast_end = [EnvelopePoint(1.0, 1.0, SHAPE_FAST_END), EnvelopePoint(3.0, 0.0, SHAPE_FAST_END)]
    # 1 - 0.5**3
    assert envelope_value_at(fast_end, 2.0) == pytest.approx(0.875)

    square = [EnvelopePoint(1.0, 1.0, SHAPE_SQUARE), EnvelopePoint(3.0, 0.0, SHAPE_SQUARE)]
    assert envelope_value_at(square, 2.9) == 1.0
    assert envelope_value_at([], 2.0) == 1.0


def test_envelope_expression() -> None:
    pts = [EnvelopePoint(1.0, 1.0, SHAPE_LINEAR), EnvelopePoint(2.0, 0.0, SHAPE_LINEAR)]
    assert envelope_expression(pts) == (
        "if(lt(t,1.000000),1.000000,"
        "if(lt(t,2.000000),1.000000+(-1.000000)*((t-1.000000)/1.000000),0.000000))"
    )
    assert envelope_expression([]) == "1"


def test_encode_render_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(encode_mod.subprocess, "run", lambda cmd, **kw: calls.append(cmd))

    out = encode_render(
        tmp_path / "in.wav",
        tmp_path / "renders" / "hit.ogg",
        start=0.0,
        end=4.0,
        envelopes=[[EnvelopePoint(3.0, 1.0), EnvelopePoint(4.0, 0.0)]],
    )

    assert out == str(tmp_path / "renders" / "hit.ogg")
    (cmd,) = calls
    af = cmd[cmd.index("-af") + 1]
    assert af.startswith("volume='if(lt(t,3.000000)")
    assert af.endswith(",apad,atrim=start=0.000000:end=4.000000,asetpts=PTS-STARTPTS")
    assert cmd[cmd.index("-codec:a") + 1] == "libvorbis"
    assert cmd[-1] == out


def test_encode_render_rejects_empty_range(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        encode_render(tmp_path / "in.wav", tmp_path / "o.ogg", start=2.0, end=2.0)


def _project() -> Project:
    p = Project(name="song")
    t = Track(name="Transcription 1")
    t.items = [TrackItem(id=1, start=0.0, length=2.0, notes=[NoteEvent(0, 960, 60)])]
    vol = Track(name="Volume", channel=1)
    vol.envelope = Envelope(points=[EnvelopePoint(2.0, 1.0), EnvelopePoint(3.0, 0.0)])
    p.tracks = [t, vol]
    return p


def test_offline_renderer_runs_fluidsynth_then_ffmpeg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    synth_calls: list[list[str]] = []
    encoded: list[dict] = []

    def _synth(cmd, **kw):
        synth_calls.append(cmd)
        assert Path(cmd[-1]).is_file()  # MIDI was exported first
        return subprocess.CompletedProcess(cmd, 0)

    def _encode(wav, out, **kw):
        encoded.append({"wav": Path(wav), "out": Path(out), **kw})
        return str(out)

    monkeypatch.setattr(render_mod.subprocess, "run", _synth)
    monkeypatch.setattr(render_mod, "encode_render", _encode)

    r = OfflineRenderer(soundfont="/sf/gm.sf2", out_dir=tmp_path)
    out = r(_project(), RenderRequest(name="soft-hitwhistle11", start=0.0, end=3.0))

    assert out == tmp_path / "soft-hitwhistle11.ogg"
    (cmd,) = synth_calls
    assert cmd[:3] == ["fluidsynth", "-ni", "-F"]
    assert "/sf/gm.sf2" in cmd
    (enc,) = encoded
    assert enc["out"] == out
    assert (enc["start"], enc["end"]) == (0.0, 3.0)
    assert [[(p.time, p.value) for p in pts] for pts in enc["envelopes"]] == [[(2.0, 1.0), (3.0, 0.0)]]


def test_offline_renderer_without_notes_renders_silence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[Path] = []

    def _encode(wav, out, **kw):
        with wave.open(str(wav), "rb") as wf:
            assert wf.getnchannels() == 2
        seen.append(Path(out))
        return str(out)

    def _no_synth(cmd, **kw):
        raise AssertionError("fluidsynth should not run")

    monkeypatch.setattr(render_mod.subprocess, "run", _no_synth)
    monkeypatch.setattr(render_mod, "encode_render", _encode)

    out = OfflineRenderer(soundfont="gm.sf2", out_dir=tmp_path)(Project(name="empty"), RenderRequest("hit", 0.0, 1.0))
    assert seen == [out]
