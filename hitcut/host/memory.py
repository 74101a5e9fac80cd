from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from hitcut.host.base import HostError, RenderError
from hitcut.model.types import (
    Envelope,
    EnvelopePoint,
    NoteEvent,
    Project,
    ProjectMarker,
    RenderRequest,
    Track,
    TrackItem,
)
from hitcut.util.timing import TempoPoint

logger = logging.getLogger(__name__)

Renderer = Callable[[Project, RenderRequest], Path]


@dataclass
class RenderRecord:
    request: RenderRequest
    project: Project  # snapshot of the project at render time
    path: Path | None = None


class MemoryHost:
    """Host implementation over an in-memory `Project`.

    Used for offline renders of JSON/MIDI projects and as a recording test
    double: every render call is kept in `renders` with a snapshot of the
    project state it saw.

    Transactions snapshot the whole project and restore it on exit, so every
    edit made inside `with host.transaction(...)` is reverted.
    """

    def __init__(
        self,
        project: Project,
        *,
        renderer: Renderer | None = None,
        project_dir: str | Path | None = None,
    ) -> None:
        self.project = project
        self.renderer = renderer
        if project_dir is not None:
            self._dir = Path(project_dir)
        elif project.path:
            self._dir = Path(project.path).expanduser().resolve().parent
        else:
            self._dir = Path.cwd()
        self.render_start = 0.0
        self.render_end = 0.0
        self.render_pattern = ""
        self.renders: list[RenderRecord] = []
        self.transactions: list[str] = []

    def project_name(self) -> str:
        return self.project.name

    def project_dir(self) -> Path:
        return self._dir

    # markers
    def list_markers(self) -> list[ProjectMarker]:
        return list(self.project.markers)

    def add_marker(self, time: float, name: str, color: str | None = None) -> ProjectMarker:
        m = ProjectMarker(time=float(time), name=name, color=color)
        self.project.markers.append(m)
        return m

    # tracks/items
    def find_track(self, name: str) -> Track | None:
        for t in self.project.tracks:
            if t.name == name:
                return t
        return None

    def create_track(self, name: str) -> Track:
        used = {t.channel for t in self.project.tracks}
        channel = next((ch for ch in range(16) if ch not in used), 15)
        t = Track(name=name, channel=channel)
        self.project.tracks.append(t)
        return t

    def track_items(self, track: Track) -> list[TrackItem]:
        return sorted(track.items, key=lambda i: i.start)

    def split_item(self, track: Track, item: TrackItem, time: float) -> TrackItem | None:
        """Split `item` at `time`; return the new right-hand item.

        Returns None when `time` is not strictly inside the item. Notes that
        start at or after the split move to the right item.
        """

        if not (item.start < time < item.end):
            return None
        split_tick = self.time_to_ticks(item, time)
        left = [n for n in item.notes if n.start < split_tick]
        right = [n for n in item.notes if n.start >= split_tick]
        new_item = TrackItem(
            id=self.project.next_item_id(),
            start=float(time),
            length=item.end - time,
            notes=right,
            midi=item.midi,
        )
        item.notes = left
        item.length = time - item.start
        track.items.append(new_item)
        return new_item

    def delete_item(self, track: Track, item: TrackItem) -> None:
        for i, it in enumerate(track.items):
            if it is item:
                del track.items[i]
                return
        raise HostError(f"item {item.id} is not on track '{track.name}'")

    # MIDI
    def item_notes(self, item: TrackItem) -> list[NoteEvent]:
        if not item.midi:
            return []
        return list(item.notes)

    def time_to_ticks(self, item: TrackItem, seconds: float) -> float:
        return self.project.tempo_map().seconds_to_ticks(seconds)

    def ticks_to_time(self, item: TrackItem, ticks: float) -> float:
        return self.project.tempo_map().ticks_to_seconds(ticks)

    def tempo_at(self, seconds: float) -> TempoPoint:
        return self.project.tempo_map().signature_at(seconds)

    # automation
    def volume_envelope(self, track: Track, *, create: bool = False) -> Envelope | None:
        if track.envelope is None and create:
            track.envelope = Envelope(name="Volume")
        return track.envelope

    def clear_envelope(self, env: Envelope) -> None:
        env.points.clear()

    def insert_envelope_point(self, env: Envelope, point: EnvelopePoint) -> None:
        env.points.append(point)

    def sort_envelope(self, env: Envelope) -> None:
        env.points.sort(key=lambda p: p.time)

    def envelope_points(self, env: Envelope) -> list[EnvelopePoint]:
        return list(env.points)

    def gain_to_envelope_value(self, gain: float) -> float:
        # lanes hold linear amplitude
        return float(gain)

    # rendering
    def set_render_bounds(self, start: float, end: float) -> None:
        if end < start:
            raise HostError(f"invalid render bounds: {start:.3f}..{end:.3f}")
        self.render_start = float(start)
        self.render_end = float(end)

    def set_render_pattern(self, name: str) -> None:
        self.render_pattern = name

    def render(self) -> Path | None:
        if not self.render_pattern:
            raise RenderError("render pattern not set")
        req = RenderRequest(name=self.render_pattern, start=self.render_start, end=self.render_end)
        rec = RenderRecord(request=req, project=Project.from_dict(self.project.to_dict()))
        self.renders.append(rec)
        if self.renderer is None:
            return None
        try:
            rec.path = self.renderer(rec.project, req)
        except Exception as e:
            raise RenderError(f"render of '{req.name}' failed: {e}") from e
        return rec.path

    # undo
    @contextmanager
    def transaction(self, label: str) -> Iterator[None]:
        self.transactions.append(label)
        saved = Project.from_dict(self.project.to_dict())
        try:
            yield
        finally:
            logger.debug("Rolling back '%s'", label)
            self.project.markers = saved.markers
            self.project.tracks = saved.tracks
            self.project.tempo = saved.tempo
