from __future__ import annotations

from pathlib import Path
from typing import ContextManager, Protocol

from hitcut.model.types import Envelope, EnvelopePoint, NoteEvent, ProjectMarker, Track, TrackItem
from hitcut.util.timing import TempoPoint


class HostError(RuntimeError):
    """The host project refused an edit (missing track, lane, ...)."""


class RenderError(HostError):
    """A render was triggered but did not produce output."""


class ProjectHost(Protocol):
    """Everything the render pipeline needs from an audio-project host.

    Pipeline code only touches host state through these calls, so any host
    (a DAW bridge, the in-memory host used offline and in tests) can drive it.
    Track/item/envelope handles are only valid inside the transaction that
    produced them.
    """

    def project_name(self) -> str: ...

    def project_dir(self) -> Path: ...

    # markers
    def list_markers(self) -> list[ProjectMarker]: ...

    def add_marker(self, time: float, name: str, color: str | None = None) -> ProjectMarker: ...

    # tracks/items
    def find_track(self, name: str) -> Track | None: ...

    def create_track(self, name: str) -> Track: ...

    def track_items(self, track: Track) -> list[TrackItem]: ...

    def split_item(self, track: Track, item: TrackItem, time: float) -> TrackItem | None: ...

    def delete_item(self, track: Track, item: TrackItem) -> None: ...

    # MIDI
    def item_notes(self, item: TrackItem) -> list[NoteEvent]: ...

    def time_to_ticks(self, item: TrackItem, seconds: float) -> float: ...

    def ticks_to_time(self, item: TrackItem, ticks: float) -> float: ...

    def tempo_at(self, seconds: float) -> TempoPoint: ...

    # automation
    def volume_envelope(self, track: Track, *, create: bool = False) -> Envelope | None: ...

    def clear_envelope(self, env: Envelope) -> None: ...

    def insert_envelope_point(self, env: Envelope, point: EnvelopePoint) -> None: ...

    def sort_envelope(self, env: Envelope) -> None: ...

    def envelope_points(self, env: Envelope) -> list[EnvelopePoint]: ...

    def gain_to_envelope_value(self, gain: float) -> float: ...

    # rendering
    def set_render_bounds(self, start: float, end: float) -> None: ...

    def set_render_pattern(self, name: str) -> None: ...

    def render(self) -> Path | None: ...

    # undo
    def transaction(self, label: str) -> ContextManager[None]: ...
