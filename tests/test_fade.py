from __future__ import annotations

import math

import pytest

from hitcut.host.base import HostError
from hitcut.host.memory import MemoryHost
from hitcut.model.types import Envelope, EnvelopePoint, Project, Track
from hitcut.pipeline.fade import build_fade, fade_window
from hitcut.util.gain import SHAPE_FAST_END, SHAPE_LINEAR, db_to_gain, gain_to_db, parse_shape
from hitcut.util.timing import TempoPoint


class _NoTracksHost(MemoryHost):
    def create_track(self, name: str) -> Track:
        raise HostError(f"cannot create '{name}'")


class _NoLaneHost(MemoryHost):
    def volume_envelope(self, track: Track, *, create: bool = False) -> Envelope | None:
        return None


def test_fade_window_uses_tempo_at_marker() -> None:
    p = Project(name="song", tempo=[TempoPoint(time=0.0, bpm=120), TempoPoint(time=10.0, bpm=60, numerator=3)])
    host = MemoryHost(p)
    assert fade_window(host, 3.0, 0.5) == pytest.approx(1.0)
    assert fade_window(host, 12.0, 0.5) == pytest.approx(1.5)


def test_build_fade_creates_track_and_lane() -> None:
    p = Project(name="song")
    host = MemoryHost(p)

    points = build_fade(host, "Volume", 3.0, 1.0, SHAPE_FAST_END)

    track = host.find_track("Volume")
    assert track is not None and track.envelope is not None
    assert [(pt.time, pt.value, pt.shape) for pt in points] == [(3.0, 1.0, SHAPE_FAST_END), (4.0, 0.0, SHAPE_FAST_END)]
    assert track.envelope.points == points


def test_build_fade_replaces_existing_points() -> None:
    p = Project(name="song")
    vol = Track(name="Volume", channel=3)
    vol.envelope = Envelope(points=[EnvelopePoint(t, 0.5) for t in (0.0, 1.0, 2.0, 6.0, 9.0)])
    p.tracks.append(vol)
    host = MemoryHost(p)

    build_fade(host, "Volume", 5.0, 2.0, SHAPE_LINEAR)

    assert len(vol.envelope.points) == 2
    assert [pt.time for pt in vol.envelope.points] == [5.0, 7.0]
    assert len(p.tracks) == 1


def test_build_fade_raises_host_error_when_track_cannot_be_created() -> None:
    with pytest.raises(HostError):
        build_fade(_NoTracksHost(Project(name="song")), "Volume", 1.0, 1.0, SHAPE_LINEAR)


def test_build_fade_raises_host_error_without_lane() -> None:
    with pytest.raises(HostError):
        build_fade(_NoLaneHost(Project(name="song")), "Volume", 1.0, 1.0, SHAPE_LINEAR)


def test_gain_domain_helpers() -> None:
    assert db_to_gain(0.0) == pytest.approx(1.0)
    assert db_to_gain(-6.0) == pytest.approx(0.501, abs=1e-3)
    assert gain_to_db(1.0) == pytest.approx(0.0)
    assert gain_to_db(0.0) == -math.inf
    assert parse_shape("fast_end") == SHAPE_FAST_END
    assert parse_shape("0") == SHAPE_LINEAR
    with pytest.raises(ValueError):
        parse_shape(9)
