from __future__ import annotations

import logging

from hitcut.host.base import ProjectHost
from hitcut.model.types import Marker

logger = logging.getLogger(__name__)


def collect_markers(host: ProjectHost) -> list[Marker]:
    """All project markers, ascending by time, indexed from 1."""

    found = host.list_markers()
    logger.info("Found %d markers in project", len(found))
    for i, m in enumerate(found, start=1):
        logger.debug("Marker %d at %.3f seconds", i, m.time)

    ordered = sorted(found, key=lambda m: m.time)
    return [Marker(time=float(m.time), index=i, name=m.name) for i, m in enumerate(ordered, start=1)]
