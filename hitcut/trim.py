from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from hitcut.pipeline.metadata import MetadataEntry, MetadataError, read_metadata

logger = logging.getLogger(__name__)

AUDIO_EXTENSION = ".ogg"


class TrimConfigError(RuntimeError):
    """Trimming cannot start at all (e.g. ffmpeg missing)."""


class TrimError(RuntimeError):
    pass


@dataclass
class TrimSummary:
    processed: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def ok(self) -> bool:
        return self.errors == 0


def require_ffmpeg() -> str:
    exe = shutil.which("ffmpeg")
    if not exe:
        raise TrimConfigError("ffmpeg is required but not installed")
    return exe


def trim_audio(src: str | Path, start: float | str, *, ffmpeg: str = "ffmpeg") -> Path:
    """Cut the first `start` seconds off `src` in place, without re-encoding.

    A string `start` goes to ffmpeg verbatim; floats are written with 3 decimals.

    ffmpeg writes to `<stem>_tmp<ext>` next to the source, which then replaces
    the original. On any failure the original is left untouched.
    """

    src = Path(src)
    tmp = src.with_name(f"{src.stem}_tmp{src.suffix}")
    cmd = [
        ffmpeg,
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(src),
        "-ss",
        start if isinstance(start, str) else f"{float(start):.3f}",
        "-c:a",
        "copy",
        str(tmp),
    ]
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
    except (OSError, subprocess.CalledProcessError) as e:
        tmp.unlink(missing_ok=True)
        raise TrimError(f"ffmpeg failed to process '{src}': {e}") from e

    try:
        tmp.replace(src)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise TrimError(f"failed to replace original file '{src}': {e}") from e
    return src


def trim_entry(entry: MetadataEntry, audio_dir: Path, *, ffmpeg: str, summary: TrimSummary) -> None:
    source = audio_dir / f"{entry.filename}{AUDIO_EXTENSION}"
    if not source.is_file():
        logger.warning("Input file '%s' not found, skipping", source)
        summary.skipped += 1
        return
    if entry.start_time == 0:
        logger.info("Skipping '%s' (start_time=0, nothing to trim)", source)
        summary.skipped += 1
        return

    offset = entry.start_text or f"{entry.start_time:.3f}"
    logger.info("Trimming '%s' (from %s seconds onwards)", source, offset)
    try:
        trim_audio(source, offset, ffmpeg=ffmpeg)
    except TrimError as e:
        logger.error("  %s", e)
        summary.errors += 1
        return
    summary.processed += 1


def trim_from_metadata(
    csv_path: str | Path,
    *,
    audio_dir: str | Path | None = None,
    ffmpeg: str | None = None,
) -> TrimSummary:
    """Trim every rendered file listed in a metadata log to its onset.

    Rows are handled independently; malformed rows and failed trims are
    counted as errors, missing files and zero onsets as skipped.
    """

    exe = ffmpeg or require_ffmpeg()
    base = Path(audio_dir) if audio_dir is not None else Path.cwd()

    summary = TrimSummary()
    for parsed in read_metadata(csv_path):
        if isinstance(parsed, MetadataError):
            logger.warning("Line %d: %s, skipping", parsed.lineno, parsed.reason)
            summary.errors += 1
            continue
        trim_entry(parsed, base, ffmpeg=exe, summary=summary)
    return summary
