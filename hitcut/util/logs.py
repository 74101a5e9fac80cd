from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

RUN_LOG_FORMAT = "[%(asctime)s] %(message)s"
RUN_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"


def configure_console(verbose: bool = False) -> None:
    """CLI logging setup; the package logger itself may run at DEBUG for file logs."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=CONSOLE_FORMAT)
    for h in logging.getLogger().handlers:
        h.setLevel(level)


@contextmanager
def run_log(path: str | Path, *, logger_name: str = "hitcut") -> Iterator[Path]:
    """Write the package's log records to a fresh per-run debug log file.

    The file is truncated and begins with a `Render Script Log - <timestamp>`
    line.
    """

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    stamp = time.strftime(RUN_LOG_DATEFMT)
    p.write_text(f"Render Script Log - {stamp}\n\n", encoding="utf-8")

    handler = logging.FileHandler(p, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(RUN_LOG_FORMAT, datefmt=RUN_LOG_DATEFMT))
    handler.setLevel(logging.DEBUG)

    log = logging.getLogger(logger_name)
    prev_level = log.level
    log.addHandler(handler)
    log.setLevel(logging.DEBUG)
    try:
        yield p
    finally:
        log.removeHandler(handler)
        log.setLevel(prev_level)
        handler.close()
