from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from hitcut.host.base import HostError, ProjectHost
from hitcut.model.types import Marker, MetadataRow, OnsetRecord
from hitcut.pipeline.fade import build_fade, fade_window
from hitcut.pipeline.markers import collect_markers
from hitcut.pipeline.metadata import MetadataLog
from hitcut.pipeline.onset import detect_onset, mark_onset
from hitcut.pipeline.render import render_name, trigger_render
from hitcut.pipeline.segment import segment_tracks
from hitcut.util.config import RenderConfig
from hitcut.util.gain import SHAPE_NAMES

logger = logging.getLogger(__name__)


@dataclass
class MarkerResult:
    marker: Marker
    filename: str
    onset: OnsetRecord
    fade_end: float
    rendered: bool = False
    faded: bool = False
    error: str | None = None

    def to_row(self) -> MetadataRow:
        return MetadataRow(
            filename=self.filename,
            onset_time=self.onset.time_or_sentinel,
            marker_time=self.marker.time,
        )


@dataclass
class PipelineResult:
    metadata_path: Path
    results: list[MarkerResult] = field(default_factory=list)

    @property
    def rows(self) -> list[MetadataRow]:
        return [r.to_row() for r in self.results]

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.rendered)


def log_config(cfg: RenderConfig) -> None:
    logger.info("CONFIGURATION:")
    logger.info("  base_index: %d", cfg.base_index)
    logger.info("  render_pattern: '%s'", cfg.render_pattern)
    logger.info("  volume_track_name: '%s'", cfg.volume_track_name)
    if cfg.ignored_pitches:
        logger.info("  Ignoring MIDI notes: %s", ", ".join(str(p) for p in cfg.ignored_pitches))
    else:
        logger.info("  No MIDI notes ignored")
    logger.info("  midi_track_names:")
    for i, name in enumerate(cfg.midi_track_names, start=1):
        logger.info("    [%d] '%s'", i, name)
    logger.info("  fade_out_bars: %.2f", cfg.fade_out_bars)
    logger.info("  fade_shape: %s", SHAPE_NAMES[cfg.fade_shape])
    logger.info("  onset_marker_prefix: '%s'", cfg.onset_marker_prefix)
    logger.info("  metadata_filename: '%s'", cfg.metadata_filename)


def process_marker(host: ProjectHost, marker: Marker, cfg: RenderConfig) -> MarkerResult:
    """Cut, fade and render everything up to `marker`, then revert all edits.

    The host is left exactly as it was before the call, whatever happens.
    """

    logger.info("-" * 50)
    logger.info("PROCESSING MARKER #%d at %.3f seconds", marker.index, marker.time)

    filename = render_name(cfg.render_pattern, cfg.base_index, marker.index)
    window = fade_window(host, marker.time, cfg.fade_out_bars)
    result = MarkerResult(
        marker=marker,
        filename=filename,
        onset=OnsetRecord(marker_index=marker.index),
        fade_end=marker.time + window,
    )

    with host.transaction(f"Render Marker {marker.index}"):
        tracks = segment_tracks(host, cfg.midi_track_names, marker.time)

        result.onset = detect_onset(host, tracks, marker, ignored=cfg.ignored_pitches)
        if cfg.onset_markers:
            mark_onset(host, cfg.onset_marker_prefix, result.onset)

        logger.debug("Processing volume track: %s", cfg.volume_track_name)
        try:
            build_fade(host, cfg.volume_track_name, marker.time, window, cfg.fade_shape)
            result.faded = True
        except HostError as e:
            logger.error("Skipping fade for marker #%d: %s", marker.index, e)

        result.rendered = trigger_render(host, filename, result.fade_end)

    logger.debug("Restored project state after marker #%d", marker.index)
    return result


def run_pipeline(
    host: ProjectHost,
    cfg: RenderConfig,
    *,
    metadata_path: str | Path | None = None,
    now: float | None = None,
) -> PipelineResult:
    """Render one file per project marker and log their onsets.

    Markers are processed one at a time in ascending order. The metadata log
    is re-created on every run and gets exactly one row per marker.
    """

    logger.info("=== STARTING RENDER ===")
    log_config(cfg)

    path = Path(metadata_path) if metadata_path is not None else host.project_dir() / cfg.metadata_filename
    log = MetadataLog(path)
    log.init(host.project_name(), when=now)

    markers = collect_markers(host)
    logger.info("Processing %d markers...", len(markers))

    out = PipelineResult(metadata_path=path)
    for marker in markers:
        try:
            res = process_marker(host, marker, cfg)
        except HostError as e:
            logger.error("Marker #%d failed: %s", marker.index, e)
            res = MarkerResult(
                marker=marker,
                filename=render_name(cfg.render_pattern, cfg.base_index, marker.index),
                onset=OnsetRecord(marker_index=marker.index),
                fade_end=marker.time,
                error=str(e),
            )
        row = res.to_row()
        logger.info("Saving note metadata: %s", row.to_line())
        log.append(row)
        out.results.append(res)

    logger.info("=== RENDER COMPLETE ===")
    return out
