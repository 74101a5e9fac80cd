from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass


DEFAULT_PPQ = 960


def bar_duration(numerator: int, denominator: int, bpm: float) -> float:
    """Length of one bar in seconds.

    bpm is always expressed in quarter notes per minute, so the denominator
    scales the beat length (4/denominator).
    """

    if bpm <= 0:
        raise ValueError(f"bpm must be > 0: {bpm}")
    if numerator <= 0 or denominator <= 0:
        raise ValueError(f"invalid time signature: {numerator}/{denominator}")
    return numerator * (60.0 / bpm) * (4.0 / denominator)


@dataclass(frozen=True)
class TempoPoint:
    """Tempo/time signature in effect from `time` (seconds) onwards."""

    time: float
    bpm: float = 120.0
    numerator: int = 4
    denominator: int = 4

    def __post_init__(self) -> None:
        if self.bpm <= 0:
            raise ValueError(f"bpm must be > 0: {self.bpm}")
        if self.numerator <= 0 or self.denominator <= 0:
            raise ValueError(f"invalid time signature: {self.numerator}/{self.denominator}")

    @property
    def bar_duration(self) -> float:
        return bar_duration(self.numerator, self.denominator, self.bpm)

    def to_dict(self) -> dict[str, float | int]:
        return {
            "time": float(self.time),
            "bpm": float(self.bpm),
            "numerator": int(self.numerator),
            "denominator": int(self.denominator),
        }

    @staticmethod
    def from_dict(d: dict) -> "TempoPoint":
        return TempoPoint(
            time=float(d.get("time", 0.0) or 0.0),
            bpm=float(d.get("bpm", 120.0) or 120.0),
            numerator=int(d.get("numerator", 4) or 4),
            denominator=int(d.get("denominator", 4) or 4),
        )


class TempoMap:
    """Piecewise-constant tempo map converting seconds <-> ticks.

    Ticks are counted per quarter note (`ppq`). Times before the first point
    use the first point's tempo.
    """

    def __init__(self, points: list[TempoPoint] | None = None, *, ppq: int = DEFAULT_PPQ) -> None:
        if ppq <= 0:
            raise ValueError(f"ppq must be > 0: {ppq}")
        pts = sorted(points or [], key=lambda p: p.time)
        if not pts:
            pts = [TempoPoint(time=0.0)]
        self.ppq = int(ppq)
        self.points = pts
        self._times = [p.time for p in pts]

        # tick position of every point, accumulated segment by segment
        self._ticks: list[float] = [self._ticks_per_second(pts[0]) * pts[0].time]
        for prev, cur in zip(pts, pts[1:]):
            self._ticks.append(self._ticks[-1] + (cur.time - prev.time) * self._ticks_per_second(prev))

    def _ticks_per_second(self, p: TempoPoint) -> float:
        return p.bpm / 60.0 * self.ppq

    def _index_at(self, seconds: float) -> int:
        return max(0, bisect_right(self._times, seconds) - 1)

    def signature_at(self, seconds: float) -> TempoPoint:
        return self.points[self._index_at(seconds)]

    def bar_duration_at(self, seconds: float) -> float:
        return self.signature_at(seconds).bar_duration

    def ticks_per_bar_at(self, seconds: float) -> float:
        p = self.signature_at(seconds)
        return self.ppq * p.numerator * (4.0 / p.denominator)

    def seconds_to_ticks(self, seconds: float) -> float:
        i = self._index_at(seconds)
        p = self.points[i]
        return self._ticks[i] + (seconds - p.time) * self._ticks_per_second(p)

    def ticks_to_seconds(self, ticks: float) -> float:
        i = max(0, bisect_right(self._ticks, ticks) - 1)
        p = self.points[i]
        return p.time + (ticks - self._ticks[i]) / self._ticks_per_second(p)
