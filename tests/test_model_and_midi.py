from __future__ import annotations

from pathlib import Path

import mido
import pytest

from hitcut.io.midi import export_midi, project_from_midi, project_to_midifile
from hitcut.io.project_json import load_project, save_project
from hitcut.model.types import (
    Envelope,
    EnvelopePoint,
    NoteEvent,
    Project,
    ProjectMarker,
    Track,
    TrackItem,
)
from hitcut.util.timing import TempoPoint


def _project() -> Project:
    p = Project(name="song", tempo=[TempoPoint(time=0.0, bpm=120), TempoPoint(time=4.0, bpm=90, numerator=3)])
    t = Track(name="Transcription 1", channel=2, program=11)
    t.items = [
        TrackItem(
            id=1,
            start=0.0,
            length=3.0,
            notes=[NoteEvent(0, 3840, 60), NoteEvent(3840, 5760, 62, velocity=90), NoteEvent(5760, 5800, 64)],
        )
    ]
    vol = Track(name="Volume", channel=3)
    vol.envelope = Envelope(points=[EnvelopePoint(1.0, 1.0, 4), EnvelopePoint(2.0, 0.0, 4)])
    p.tracks = [t, vol]
    p.markers = [ProjectMarker(time=2.5, name="cut", color="#ff0000")]
    return p


def test_project_json_round_trip(tmp_path: Path) -> None:
    p = _project()
    out = save_project(p, tmp_path / "song.json")

    loaded = load_project(out)

    assert loaded.to_dict() == p.to_dict()
    assert loaded.path == out


def test_load_rejects_newer_schema(tmp_path: Path) -> None:
    path = tmp_path / "future.json"
    path.write_text('{"schema_version": 99, "name": "x"}', encoding="utf-8")
    with pytest.raises(ValueError):
        load_project(path)


def test_bad_note_is_rejected() -> None:
    with pytest.raises(ValueError):
        NoteEvent(start=10, end=5, pitch=60)
    with pytest.raises(ValueError):
        NoteEvent(start=0, end=5, pitch=200)


def test_import_midi_tracks_markers_and_tempo(tmp_path: Path) -> None:
    mf = mido.MidiFile(ticks_per_beat=480)
    meta = mido.MidiTrack()
    meta.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(120), time=0))
    meta.append(mido.MetaMessage("time_signature", numerator=3, denominator=4, time=0))
    meta.append(mido.MetaMessage("marker", text="cut", time=1920))
    meta.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(60), time=0))
    mf.tracks.append(meta)

    notes = mido.MidiTrack()
    notes.append(mido.MetaMessage("track_name", name="Transcription 1", time=0))
    notes.append(mido.Message("note_on", note=60, velocity=80, channel=1, time=0))
    notes.append(mido.Message("note_off", note=60, velocity=0, channel=1, time=480))
    notes.append(mido.Message("note_on", note=62, velocity=70, channel=1, time=480))
    notes.append(mido.Message("note_on", note=62, velocity=0, channel=1, time=480))
    mf.tracks.append(notes)

    path = tmp_path / "transcription.mid"
    mf.save(str(path))

    p = project_from_midi(path)

    assert p.name == "transcription"
    assert p.ppq == 480
    assert [(t.time, t.bpm, t.numerator) for t in p.tempo] == [(0.0, 120.0, 3), (pytest.approx(2.0), 60.0, 3)]
    assert [(m.time, m.name) for m in p.markers] == [(pytest.approx(2.0), "cut")]

    assert [t.name for t in p.tracks] == ["Transcription 1"]
    item = p.tracks[0].items[0]
    assert item.start == 0.0
    assert item.end == pytest.approx(1.5)
    assert [(n.start, n.end, n.pitch, n.velocity) for n in item.notes] == [(0, 480, 60, 80), (960, 1440, 62, 70)]
    assert p.tracks[0].channel == 1


def test_export_clips_notes_at_render_end() -> None:
    mf = project_to_midifile(_project(), end=2.5)

    assert [t.name for t in mf.tracks] == ["song", "Transcription 1"]
    tempos = [m for m in mf.tracks[0] if m.type == "set_tempo"]
    assert [round(mido.tempo2bpm(m.tempo)) for m in tempos] == [120, 90]

    tick = 0
    events = []
    for msg in mf.tracks[1]:
        tick += msg.time
        if msg.type in {"note_on", "note_off"}:
            events.append((tick, msg.type, msg.note, msg.channel))
    assert events == [
        (0, "note_on", 60, 2),
        (3840, "note_off", 60, 2),
        (3840, "note_on", 62, 2),
        (4800, "note_off", 62, 2),
    ]
    assert any(m.type == "program_change" and m.program == 11 for m in mf.tracks[1])


def test_export_skips_muted_tracks(tmp_path: Path) -> None:
    p = _project()
    p.tracks[0].mute = True
    res = export_midi(p, tmp_path / "out.mid")
    assert len(mido.MidiFile(res.path).tracks) == 1
    assert res.ticks_per_beat == 960
