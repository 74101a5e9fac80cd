from __future__ import annotations

import logging
from pathlib import Path

from hitcut.audio.render import OfflineRenderer
from hitcut.host.memory import MemoryHost
from hitcut.io.midi import project_from_midi
from hitcut.io.project_json import load_project
from hitcut.model.types import Project
from hitcut.pipeline.run import PipelineResult, run_pipeline
from hitcut.util.config import RenderConfig
from hitcut.util.logs import run_log

logger = logging.getLogger(__name__)


def load_any_project(path: str | Path) -> Project:
    """Project JSON, or a MIDI file imported on the fly."""
    p = Path(path)
    if p.suffix.lower() in {".mid", ".midi"}:
        project = project_from_midi(p)
        project.path = str(p)
        return project
    return load_project(p)


def render_project(
    project_path: str | Path,
    cfg: RenderConfig,
    *,
    soundfont: str | None = None,
    out_dir: str | Path | None = None,
    dry_run: bool = False,
) -> PipelineResult:
    """Run the marker render pipeline on a project file.

    Metadata and the debug log go to the project's directory; renders go to
    `out_dir` (default: the project's directory). With dry_run nothing is
    synthesized, but the metadata log is still written.
    """

    project = load_any_project(project_path)
    project_dir = Path(project_path).expanduser().resolve().parent

    renderer = None
    if not dry_run:
        if not soundfont:
            raise ValueError("a SoundFont is required to render (or use dry_run)")
        renderer = OfflineRenderer(soundfont=soundfont, out_dir=Path(out_dir) if out_dir else project_dir)

    host = MemoryHost(project, renderer=renderer, project_dir=project_dir)
    if not cfg.log_to_file:
        return run_pipeline(host, cfg)
    with run_log(project_dir / cfg.debug_log_filename):
        return run_pipeline(host, cfg)
