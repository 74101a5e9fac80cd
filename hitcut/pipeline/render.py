from __future__ import annotations

import logging

from hitcut.host.base import ProjectHost, RenderError

logger = logging.getLogger(__name__)


def render_name(pattern: str, base_index: int, marker_index: int) -> str:
    """Output name for a marker: pattern formatted with base_index + marker_index - 1."""
    return pattern.format(index=base_index + marker_index - 1)


def trigger_render(host: ProjectHost, name: str, end: float) -> bool:
    """Render [0, end] to `name` with the host's current render settings.

    Render failures are logged and reported as False so later markers still run.
    """

    logger.debug("Setting time selection: 0 to %.3f", end)
    host.set_render_bounds(0.0, end)
    host.set_render_pattern(name)

    logger.info("Rendering file: %s", name)
    try:
        out = host.render()
    except RenderError as e:
        logger.error("Render of '%s' failed: %s", name, e)
        return False
    if out is not None:
        logger.debug("Render written to %s", out)
    logger.info("Render complete")
    return True
