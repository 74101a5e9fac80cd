from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    import mido

from hitcut.model.types import NoteEvent, Project, ProjectMarker, Track, TrackItem
from hitcut.util.timing import TempoMap, TempoPoint


@dataclass
class MidiExportResult:
    path: str
    ticks_per_beat: int


def _absolute(track: Any) -> list[tuple[int, Any]]:
    out: list[tuple[int, Any]] = []
    tick = 0
    for msg in track:
        tick += msg.time
        out.append((tick, msg))
    return out


def _tempo_points(mf: Any) -> list[TempoPoint]:
    """Tempo/time-signature changes of a MIDI file as seconds-based points."""

    import mido  # type: ignore

    changes: dict[int, dict[str, Any]] = {}
    for track in mf.tracks:
        for tick, msg in _absolute(track):
            if msg.type == "set_tempo":
                changes.setdefault(tick, {})["bpm"] = mido.tempo2bpm(msg.tempo)
            elif msg.type == "time_signature":
                changes.setdefault(tick, {})["sig"] = (msg.numerator, msg.denominator)

    ppq = mf.ticks_per_beat
    bpm, num, den = 120.0, 4, 4
    seconds, last_tick = 0.0, 0
    points: list[TempoPoint] = []
    for tick in sorted(changes):
        seconds += (tick - last_tick) / ppq * (60.0 / bpm)
        last_tick = tick
        ch = changes[tick]
        bpm = float(ch.get("bpm", bpm))
        num, den = ch.get("sig", (num, den))
        points.append(TempoPoint(time=seconds, bpm=bpm, numerator=num, denominator=den))
    if not points or points[0].time > 0:
        points.insert(0, TempoPoint(time=0.0))
    return points


def _track_notes(events: list[tuple[int, Any]]) -> list[NoteEvent]:
    open_notes: dict[tuple[int, int], list[tuple[int, int]]] = {}
    notes: list[NoteEvent] = []
    last_tick = 0
    for tick, msg in events:
        last_tick = tick
        if msg.type == "note_on" and msg.velocity > 0:
            open_notes.setdefault((msg.channel, msg.note), []).append((tick, msg.velocity))
        elif msg.type in {"note_off", "note_on"}:
            stack = open_notes.get((msg.channel, msg.note))
            if not stack:
                continue
            start, vel = stack.pop(0)
            notes.append(NoteEvent(start=start, end=tick, pitch=msg.note, channel=msg.channel, velocity=vel))

    # hanging notes end with the track
    for (channel, pitch), stack in open_notes.items():
        for start, vel in stack:
            notes.append(NoteEvent(start=start, end=max(start, last_tick), pitch=pitch, channel=channel, velocity=vel))
    return sorted(notes)


def project_from_midi(path: str | Path, *, name: str | None = None) -> Project:
    """Build a project from a MIDI file (e.g. a transcription).

    Every track with notes becomes a track holding one MIDI item from 0 to its
    last note-off. `marker` meta events become project markers.
    """

    import mido  # type: ignore

    p = Path(path)
    mf = mido.MidiFile(str(p))
    tempo = _tempo_points(mf)
    project = Project(name=name or p.stem, ppq=mf.ticks_per_beat, tempo=tempo)
    tmap = project.tempo_map()

    for i, track in enumerate(mf.tracks):
        events = _absolute(track)
        track_name = f"Track {i}"
        program = 0
        for tick, msg in events:
            if msg.type == "track_name" and msg.name.strip():
                track_name = msg.name.strip()
            elif msg.type == "program_change" and program == 0:
                program = msg.program
            elif msg.type == "marker":
                project.markers.append(ProjectMarker(time=tmap.ticks_to_seconds(tick), name=msg.text))

        notes = _track_notes(events)
        if not notes:
            continue
        end = tmap.ticks_to_seconds(max(n.end for n in notes))
        t = Track(name=track_name, channel=notes[0].channel, program=program)
        t.items.append(TrackItem(id=project.next_item_id(), start=0.0, length=end, notes=notes))
        project.tracks.append(t)

    return project


def _item_events(item: TrackItem, tmap: TempoMap, channel: int, end_tick: float | None) -> list[tuple[int, Any]]:
    import mido  # type: ignore

    lo = tmap.seconds_to_ticks(item.start)
    hi = tmap.seconds_to_ticks(item.end)
    if end_tick is not None:
        hi = min(hi, end_tick)

    events: list[tuple[int, Any]] = []
    for n in item.notes:
        if n.start < lo or n.start >= hi:
            continue
        off = int(min(n.end, hi))
        if off <= n.start:
            continue
        events.append((n.start, mido.Message("note_on", note=n.pitch, velocity=n.velocity, channel=channel)))
        events.append((off, mido.Message("note_off", note=n.pitch, velocity=0, channel=channel)))
    return events


def project_to_midifile(project: Project, *, end: float | None = None) -> Any:
    """MIDI file of the project's audible MIDI content, optionally cut at `end` seconds."""

    import mido  # type: ignore

    tmap = project.tempo_map()
    end_tick = tmap.seconds_to_ticks(end) if end is not None else None

    mf = mido.MidiFile(ticks_per_beat=project.ppq)

    tempo_track = mido.MidiTrack()
    tempo_track.append(mido.MetaMessage("track_name", name=project.name, time=0))
    tempo_events: list[tuple[int, Any]] = []
    for p in sorted(project.tempo, key=lambda p: p.time):
        tick = max(0, int(round(tmap.seconds_to_ticks(p.time))))
        tempo_events.append((tick, mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(p.bpm))))
        tempo_events.append(
            (tick, mido.MetaMessage("time_signature", numerator=p.numerator, denominator=p.denominator))
        )
    _append_events(tempo_track, tempo_events)
    mf.tracks.append(tempo_track)

    for track in project.tracks:
        if track.mute:
            continue
        events: list[tuple[int, Any]] = []
        for item in track.items:
            if item.midi:
                events.extend(_item_events(item, tmap, track.channel, end_tick))
        if not events:
            continue
        mt = mido.MidiTrack()
        mt.append(mido.MetaMessage("track_name", name=track.name, time=0))
        mt.append(mido.Message("program_change", program=track.program, channel=track.channel, time=0))
        # note_off before note_on at the same tick so retriggers aren't swallowed
        events.sort(key=lambda x: (x[0], 0 if x[1].type == "note_off" else 1))
        _append_events(mt, events)
        mf.tracks.append(mt)

    return mf


def _append_events(mt: Any, events: list[tuple[int, Any]]) -> None:
    last_t = 0
    for t, msg in events:
        msg.time = t - last_t
        last_t = t
        mt.append(msg)


def export_midi(project: Project, path: str | Path, *, end: float | None = None) -> MidiExportResult:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    mf = project_to_midifile(project, end=end)
    mf.save(out)
    return MidiExportResult(path=str(out), ticks_per_beat=mf.ticks_per_beat)
