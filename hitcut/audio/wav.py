from __future__ import annotations

import wave
from pathlib import Path


def write_silence(path: Path, *, seconds: float, sample_rate: int, channels: int = 2) -> None:
    """16-bit PCM silence; stands in for a synth pass when nothing is audible."""

    path.parent.mkdir(parents=True, exist_ok=True)
    frames = max(1, int(seconds * sample_rate))
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(int(channels))
        wf.setsampwidth(2)
        wf.setframerate(int(sample_rate))
        wf.writeframes(bytes(frames * channels * 2))
