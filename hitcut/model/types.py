from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hitcut.util.timing import DEFAULT_PPQ, TempoMap, TempoPoint


@dataclass(frozen=True)
class Marker:
    """An authored cut point, as handed out by the marker registry.

    index is 1-based and follows ascending marker time.
    """

    time: float
    index: int
    name: str = ""


@dataclass
class ProjectMarker:
    time: float
    name: str = ""
    color: str | None = None  # "#rrggbb"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"time": float(self.time), "name": self.name}
        if self.color:
            d["color"] = self.color
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "ProjectMarker":
        return ProjectMarker(
            time=float(d["time"]),
            name=str(d.get("name", "") or ""),
            color=(str(d["color"]) if d.get("color") else None),
        )


@dataclass(order=True)
class NoteEvent:
    """A MIDI note. Ticks are absolute project ticks (PPQ)."""

    start: int
    end: int
    pitch: int
    channel: int = 0
    velocity: int = 100

    def __post_init__(self) -> None:
        if not (0 <= self.pitch <= 127):
            raise ValueError(f"pitch out of range: {self.pitch}")
        if not (0 <= self.channel <= 15):
            raise ValueError(f"channel out of range: {self.channel}")
        if not (1 <= self.velocity <= 127):
            raise ValueError(f"velocity out of range: {self.velocity}")
        if self.end < self.start:
            raise ValueError("end must be >= start")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"start": self.start, "end": self.end, "pitch": self.pitch}
        if self.channel:
            d["channel"] = self.channel
        if self.velocity != 100:
            d["velocity"] = self.velocity
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "NoteEvent":
        return NoteEvent(
            start=int(d["start"]),
            end=int(d["end"]),
            pitch=int(d["pitch"]),
            channel=int(d.get("channel", 0) or 0),
            velocity=int(d.get("velocity", 100) or 100),
        )


@dataclass
class TrackItem:
    """A media item on a track. start/length are in seconds."""

    id: int
    start: float
    length: float
    notes: list[NoteEvent] = field(default_factory=list)
    midi: bool = True

    @property
    def end(self) -> float:
        return self.start + self.length

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "start": float(self.start),
            "length": float(self.length),
            "notes": [n.to_dict() for n in sorted(self.notes)],
        }
        if not self.midi:
            d["midi"] = False
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "TrackItem":
        return TrackItem(
            id=int(d.get("id", 0) or 0),
            start=float(d.get("start", 0.0) or 0.0),
            length=float(d.get("length", 0.0) or 0.0),
            notes=[NoteEvent.from_dict(x) for x in d.get("notes", []) or []],
            midi=bool(d.get("midi", True)),
        )


@dataclass
class EnvelopePoint:
    time: float
    value: float
    shape: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"time": float(self.time), "value": float(self.value), "shape": int(self.shape)}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "EnvelopePoint":
        return EnvelopePoint(
            time=float(d["time"]),
            value=float(d["value"]),
            shape=int(d.get("shape", 0) or 0),
        )


@dataclass
class Envelope:
    """An automation lane: time-ordered control points."""

    name: str = "Volume"
    points: list[EnvelopePoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "points": [p.to_dict() for p in self.points]}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Envelope":
        return Envelope(
            name=str(d.get("name", "Volume") or "Volume"),
            points=[EnvelopePoint.from_dict(x) for x in d.get("points", []) or []],
        )


@dataclass
class Track:
    name: str
    channel: int = 0  # 0-15
    program: int = 0  # GM patch 0-127
    items: list[TrackItem] = field(default_factory=list)

    # Volume automation lane; None until shown/created.
    envelope: Envelope | None = None

    mute: bool = False

    def __post_init__(self) -> None:
        if not (0 <= self.channel <= 15):
            raise ValueError(f"channel out of range: {self.channel}")
        if not (0 <= self.program <= 127):
            raise ValueError(f"program out of range: {self.program}")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "channel": self.channel,
            "program": self.program,
            "mute": self.mute,
            "items": [i.to_dict() for i in self.items],
        }
        if self.envelope is not None:
            d["envelope"] = self.envelope.to_dict()
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Track":
        t = Track(
            name=str(d["name"]),
            channel=int(d.get("channel", 0) or 0),
            program=int(d.get("program", 0) or 0),
            mute=bool(d.get("mute", False)),
        )
        t.items = [TrackItem.from_dict(x) for x in d.get("items", []) or []]
        env = d.get("envelope", None)
        if isinstance(env, dict):
            t.envelope = Envelope.from_dict(env)
        return t


@dataclass
class Project:
    name: str
    ppq: int = DEFAULT_PPQ
    tempo: list[TempoPoint] = field(default_factory=lambda: [TempoPoint(time=0.0)])
    tracks: list[Track] = field(default_factory=list)
    markers: list[ProjectMarker] = field(default_factory=list)

    # runtime-only fields
    path: str | None = None

    def tempo_map(self) -> TempoMap:
        return TempoMap(self.tempo, ppq=self.ppq)

    def next_item_id(self) -> int:
        ids = [i.id for t in self.tracks for i in t.items]
        return max(ids, default=0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": 1,
            "name": self.name,
            "ppq": self.ppq,
            "tempo": [p.to_dict() for p in self.tempo],
            "markers": [m.to_dict() for m in self.markers],
            "tracks": [t.to_dict() for t in self.tracks],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Project":
        p = Project(
            name=str(d.get("name", "Untitled")),
            ppq=int(d.get("ppq", DEFAULT_PPQ) or DEFAULT_PPQ),
        )
        tempo = [TempoPoint.from_dict(x) for x in d.get("tempo", []) or []]
        if tempo:
            p.tempo = tempo
        p.markers = [ProjectMarker.from_dict(x) for x in d.get("markers", []) or []]
        p.tracks = [Track.from_dict(x) for x in d.get("tracks", []) or []]
        return p


@dataclass(frozen=True)
class OnsetRecord:
    marker_index: int
    time: float | None = None

    @property
    def time_or_sentinel(self) -> float:
        """Onset in seconds, or 0.0 when no note qualified (nothing to trim)."""
        return 0.0 if self.time is None else float(self.time)


@dataclass(frozen=True)
class MetadataRow:
    filename: str
    onset_time: float
    marker_time: float

    def to_line(self) -> str:
        return f"{self.filename},{self.onset_time:.3f},{self.marker_time:.3f}"


@dataclass(frozen=True)
class RenderRequest:
    name: str
    start: float
    end: float
