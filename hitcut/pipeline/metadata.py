"""Metadata log shared by the render and trim stages.

Format (UTF-8, comma separated)::

    # Metadata generated 2024-05-01 12:00:00
    # Project: song.rpp
    filename,start_time,end_time
    soft-hitwhistle11,1.250,3.000

start_time is the detected onset (0.000 when none), end_time the marker.
Readers also accept 2-column `filename,start_time` rows and ignore extra
columns.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from pathlib import Path

from hitcut.model.types import MetadataRow

METADATA_FILENAME = "note_metadata.csv"
HEADER = ("filename", "start_time", "end_time")

_DECIMAL = re.compile(r"^[0-9]+\.?[0-9]*$")


class MetadataLog:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def init(self, project_name: str, when: float | None = None) -> None:
        """Truncate the log and write the comment + column header."""
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(when))
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            f.write(f"# Metadata generated {stamp}\n")
            f.write(f"# Project: {project_name}\n")
            f.write(",".join(HEADER) + "\n")

    def append(self, row: MetadataRow) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(row.to_line() + "\n")


@dataclass(frozen=True)
class MetadataEntry:
    lineno: int
    filename: str
    start_time: float
    end_time: float | None = None
    start_text: str = field(default="", compare=False)  # as written in the log


@dataclass(frozen=True)
class MetadataError:
    lineno: int
    line: str
    reason: str


def parse_metadata_line(lineno: int, raw: str) -> MetadataEntry | MetadataError | None:
    """Parse one log line. Returns None for blank, comment and header lines."""

    line = raw.strip()
    if not line or line.startswith("#"):
        return None

    fields = line.split(",")
    filename = fields[0].replace('"', "").strip()
    if filename == HEADER[0]:
        return None
    if not filename:
        return MetadataError(lineno, line, "missing filename")

    start = fields[1].strip() if len(fields) > 1 else ""
    if not _DECIMAL.match(start):
        return MetadataError(lineno, line, f"invalid start time '{start}'")

    end: float | None = None
    if len(fields) > 2 and _DECIMAL.match(fields[2].strip()):
        end = float(fields[2].strip())
    return MetadataEntry(lineno=lineno, filename=filename, start_time=float(start), end_time=end, start_text=start)


def read_metadata(path: str | Path) -> list[MetadataEntry | MetadataError]:
    """Parse a log file. Lines are decoded one by one, so a bad row stays local."""

    out: list[MetadataEntry | MetadataError] = []
    for lineno, chunk in enumerate(Path(path).read_bytes().splitlines(), start=1):
        try:
            raw = chunk.decode("utf-8-sig" if lineno == 1 else "utf-8")
        except UnicodeDecodeError:
            out.append(MetadataError(lineno, chunk.decode("utf-8", errors="replace"), "invalid UTF-8"))
            continue
        parsed = parse_metadata_line(lineno, raw)
        if parsed is not None:
            out.append(parsed)
    return out
