from __future__ import annotations

import logging

from hitcut.host.base import ProjectHost
from hitcut.model.types import Track

logger = logging.getLogger(__name__)


def truncate_track(host: ProjectHost, track: Track, marker_time: float) -> int:
    """Split every item crossing `marker_time` and delete the right part.

    Items are visited last-to-first so splits don't shift the ones still to
    visit. Items entirely before or after the marker are left alone.
    Returns the number of items cut.
    """

    items = host.track_items(track)
    logger.debug("Found %d items in track '%s'", len(items), track.name)

    cut = 0
    for item in reversed(items):
        if not (item.start < marker_time < item.end):
            continue
        logger.debug("Item %d extends beyond marker - splitting at %.3f", item.id, marker_time)
        tail = host.split_item(track, item, marker_time)
        if tail is None:
            continue
        host.delete_item(track, tail)
        cut += 1
    return cut


def segment_tracks(host: ProjectHost, track_names: list[str], marker_time: float) -> list[Track]:
    """Truncate the named tracks at `marker_time`; return the tracks that exist."""

    tracks: list[Track] = []
    for name in track_names:
        track = host.find_track(name)
        if track is None:
            logger.warning("Track '%s' not found, skipping", name)
            continue
        logger.debug("Processing MIDI track: %s", name)
        truncate_track(host, track, marker_time)
        tracks.append(track)
    return tracks
