from __future__ import annotations

import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from hitcut.audio.encode import encode_render
from hitcut.audio.wav import write_silence
from hitcut.io.midi import export_midi
from hitcut.model.types import Project, RenderRequest

logger = logging.getLogger(__name__)


@dataclass
class OfflineRenderer:
    """Render a project snapshot to `<out_dir>/<name>.ogg`.

    MIDI content is synthesized with FluidSynth, then ffmpeg applies every
    track's volume lane to the mix, cuts it to the render bounds and encodes
    Ogg Vorbis. Lanes act on the whole mix: the volume track is expected to
    be the parent of everything rendered.
    """

    soundfont: str
    out_dir: Path
    sample_rate: int = 44100
    extension: str = ".ogg"

    def __call__(self, project: Project, request: RenderRequest) -> Path:
        out = Path(self.out_dir) / f"{request.name}{self.extension}"

        with tempfile.TemporaryDirectory(prefix="hitcut_render_") as td:
            tdir = Path(td)
            midi_path = tdir / "render.mid"
            export_midi(project, midi_path, end=request.end)

            wav = tdir / "render.wav"
            has_notes = any(i.notes for t in project.tracks if not t.mute for i in t.items if i.midi)
            if has_notes:
                cmd = [
                    "fluidsynth",
                    "-ni",
                    "-F",
                    str(wav),
                    "-r",
                    str(int(self.sample_rate)),
                    str(Path(self.soundfont).expanduser()),
                    str(midi_path),
                ]
                subprocess.run(cmd, check=True)
            else:
                write_silence(wav, seconds=0.5, sample_rate=self.sample_rate)

            envelopes = [t.envelope.points for t in project.tracks if t.envelope is not None and t.envelope.points]
            encode_render(
                wav,
                out,
                start=request.start,
                end=request.end,
                envelopes=envelopes,
                sample_rate=self.sample_rate,
            )

        logger.debug("Rendered %s (%.3f..%.3f)", out, request.start, request.end)
        return out
