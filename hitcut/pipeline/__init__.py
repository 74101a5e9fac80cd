"""Marker render pipeline.

Per marker, in ascending time order and inside a host transaction:
- segment_tracks: cut configured tracks at the marker
- detect_onset: last qualifying note start before the marker
- build_fade: hold-then-decay volume lane after the marker
- trigger_render: deterministic name, bounds [0, marker + fade]
then one metadata row per marker via MetadataLog.
"""

from .metadata import MetadataLog, read_metadata
from .run import MarkerResult, PipelineResult, process_marker, run_pipeline

__all__ = [
    "MetadataLog",
    "read_metadata",
    "MarkerResult",
    "PipelineResult",
    "process_marker",
    "run_pipeline",
]
