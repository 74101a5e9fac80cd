from __future__ import annotations

import subprocess
from pathlib import Path

from hitcut.model.types import EnvelopePoint
from hitcut.util.gain import SHAPE_BEZIER, SHAPE_FAST_END, SHAPE_FAST_START, SHAPE_SLOW, SHAPE_SQUARE, shape_curve


def envelope_value_at(points: list[EnvelopePoint], t: float) -> float:
    """Value of a volume lane at time t (seconds)."""

    if not points:
        return 1.0
    pts = sorted(points, key=lambda p: p.time)
    if t <= pts[0].time:
        return pts[0].value
    for a, b in zip(pts, pts[1:]):
        if t < b.time:
            span = b.time - a.time
            x = (t - a.time) / span if span > 0 else 1.0
            return a.value + (b.value - a.value) * shape_curve(a.shape, x)
    return pts[-1].value


def _curve_expr(shape: int, x: str) -> str:
    if shape == SHAPE_SQUARE:
        return "0"
    if shape in {SHAPE_SLOW, SHAPE_BEZIER}:
        return f"({x})*({x})*(3-2*({x}))"
    if shape == SHAPE_FAST_START:
        return f"(1-pow(1-({x}),3))"
    if shape == SHAPE_FAST_END:
        return f"pow({x},3)"
    return f"({x})"


def envelope_expression(points: list[EnvelopePoint]) -> str:
    """ffmpeg `volume` expression (in t) equivalent to `envelope_value_at`."""

    if not points:
        return "1"
    pts = sorted(points, key=lambda p: p.time)
    expr = f"{pts[-1].value:.6f}"
    for a, b in reversed(list(zip(pts, pts[1:]))):
        span = b.time - a.time
        if span <= 0:
            continue
        x = f"(t-{a.time:.6f})/{span:.6f}"
        seg = f"{a.value:.6f}+({b.value - a.value:.6f})*{_curve_expr(a.shape, x)}"
        expr = f"if(lt(t,{b.time:.6f}),{seg},{expr})"
    return f"if(lt(t,{pts[0].time:.6f}),{pts[0].value:.6f},{expr})"


def envelope_filter(envelopes: list[list[EnvelopePoint]]) -> list[str]:
    """One `volume` filter per lane; lanes multiply."""
    return [f"volume='{envelope_expression(pts)}':eval=frame" for pts in envelopes if pts]


def encode_render(
    in_wav: str | Path,
    out_path: str | Path,
    *,
    start: float,
    end: float,
    envelopes: list[list[EnvelopePoint]] | None = None,
    sample_rate: int = 44100,
    quality: int = 6,
) -> str:
    """Apply volume lanes, cut to [start, end] and encode Ogg Vorbis via ffmpeg."""

    if end <= start:
        raise ValueError(f"empty render range: {start:.3f}..{end:.3f}")

    chain = envelope_filter(envelopes or [])
    # apad so renders shorter than the range still reach `end`
    chain += ["apad", f"atrim=start={start:.6f}:end={end:.6f}", "asetpts=PTS-STARTPTS"]

    outp = Path(out_path)
    outp.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        "ffmpeg",
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
        "-i",
        str(in_wav),
        "-af",
        ",".join(chain),
        "-ar",
        str(int(sample_rate)),
        "-codec:a",
        "libvorbis",
        "-q:a",
        str(int(quality)),
        str(outp),
    ]
    subprocess.run(cmd, check=True)
    return str(outp)
