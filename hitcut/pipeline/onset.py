from __future__ import annotations

import logging
from collections.abc import Iterable

from hitcut.host.base import ProjectHost
from hitcut.model.types import Marker, NoteEvent, OnsetRecord, Track

logger = logging.getLogger(__name__)

ONSET_MARKER_COLOR = "#0000ff"


def select_onset(
    notes: Iterable[NoteEvent],
    marker_tick: float,
    window_ticks: float,
    ignored: Iterable[int] = (),
) -> NoteEvent | None:
    """Pick the note whose onset a render should be trimmed to.

    Candidates end inside (marker_tick - window_ticks, marker_tick] and are
    not in `ignored`; the one with the latest start wins. Equal starts keep
    the first candidate seen.
    """

    skip = set(ignored)
    lo = marker_tick - window_ticks
    best: NoteEvent | None = None
    for n in notes:
        if n.pitch in skip:
            continue
        if not (lo < n.end <= marker_tick):
            continue
        if best is None or n.start > best.start:
            best = n
    return best


def detect_onset(
    host: ProjectHost,
    tracks: list[Track],
    marker: Marker,
    *,
    ignored: Iterable[int] = (),
) -> OnsetRecord:
    """Onset (seconds) of the last note ending within one bar before `marker`.

    Every MIDI item of every track is considered; a single onset survives
    across all of them.
    """

    ignored = list(ignored)
    bar_seconds = host.tempo_at(marker.time).bar_duration

    best_time: float | None = None
    for track in tracks:
        for item in host.track_items(track):
            notes = host.item_notes(item)
            if not notes:
                continue
            marker_tick = host.time_to_ticks(item, marker.time)
            window_ticks = marker_tick - host.time_to_ticks(item, marker.time - bar_seconds)
            note = select_onset(notes, marker_tick, window_ticks, ignored)
            if note is None:
                continue
            start = host.ticks_to_time(item, note.start)
            logger.debug("Note start at %.3f (before marker %.3f) on '%s'", start, marker.time, track.name)
            if best_time is None or start > best_time:
                best_time = start

    if best_time is None:
        logger.info("No note ends within one bar before marker #%d", marker.index)
    return OnsetRecord(marker_index=marker.index, time=best_time)


def onset_marker_name(prefix: str, marker_index: int, onset: float) -> str:
    return f"{prefix}{marker_index}_{onset:.3f}"


def mark_onset(host: ProjectHost, prefix: str, onset: OnsetRecord) -> None:
    """Drop an advisory marker at the onset for the operator; no pipeline effect."""
    if onset.time is None:
        return
    host.add_marker(onset.time, onset_marker_name(prefix, onset.marker_index, onset.time), ONSET_MARKER_COLOR)
