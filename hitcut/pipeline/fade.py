from __future__ import annotations

import logging

from hitcut.host.base import HostError, ProjectHost
from hitcut.model.types import Envelope, EnvelopePoint
from hitcut.util.gain import SILENT_GAIN, UNITY_GAIN

logger = logging.getLogger(__name__)


def fade_window(host: ProjectHost, marker_time: float, bars: float) -> float:
    """Fade length in seconds: `bars` bars at the tempo in effect at the marker."""
    return host.tempo_at(marker_time).bar_duration * float(bars)


def ensure_volume_envelope(host: ProjectHost, track_name: str) -> Envelope:
    """Find (or create) the track and its volume lane. Raises HostError."""

    track = host.find_track(track_name)
    if track is None:
        logger.info("Volume track '%s' not found - creating new one", track_name)
        track = host.create_track(track_name)
        if track is None:
            raise HostError(f"failed to create track '{track_name}'")

    env = host.volume_envelope(track, create=True)
    if env is None:
        raise HostError(f"failed to create volume envelope on '{track_name}'")
    return env


def build_fade(
    host: ProjectHost,
    track_name: str,
    marker_time: float,
    window: float,
    shape: int,
) -> list[EnvelopePoint]:
    """Replace the lane's points with hold-at-marker then decay-to-silence.

    After this call the lane holds exactly two points:
    (marker_time, unity) and (marker_time + window, silence).
    """

    env = ensure_volume_envelope(host, track_name)
    host.clear_envelope(env)
    host.insert_envelope_point(
        env, EnvelopePoint(time=marker_time, value=host.gain_to_envelope_value(UNITY_GAIN), shape=shape)
    )
    host.insert_envelope_point(
        env, EnvelopePoint(time=marker_time + window, value=host.gain_to_envelope_value(SILENT_GAIN), shape=shape)
    )
    host.sort_envelope(env)

    points = host.envelope_points(env)
    logger.debug("Final point count: %d", len(points))
    for i, p in enumerate(points, start=1):
        logger.debug("Point %d: time=%.3f, value=%.3f, shape=%d", i, p.time, p.value, p.shape)
    return points
