from __future__ import annotations

import argparse
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path


GLOBAL_FLAGS = {"-v", "--verbose"}


@dataclass
class DoctorResult:
    ok: bool
    notes: list[str]


def _which(cmd: str) -> str | None:
    return shutil.which(cmd)


def _doctor() -> DoctorResult:
    notes: list[str] = []
    ok = True

    ffmpeg = _which("ffmpeg")
    if ffmpeg:
        notes.append(f"ffmpeg: OK ({ffmpeg})")
    else:
        ok = False
        notes.append("ffmpeg: MISSING (needed for renders and trimming)")

    fluidsynth = _which("fluidsynth")
    if fluidsynth:
        notes.append(f"fluidsynth: OK ({fluidsynth})")
    else:
        # only offline renders need it
        notes.append("fluidsynth: missing (only needed for `hitcut render`)")

    notes.append(f"python: {sys.version.split()[0]}")
    notes.append(f"platform: {sys.platform}")
    return DoctorResult(ok=ok, notes=notes)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hitcut",
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "hitcut - render a project up to each cut marker and trim the renders\n"
            "to the onset of the last note before the marker.\n"
        ),
    )
    p.add_argument("--version", action="store_true", help="Print version and exit.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console.")

    sub = p.add_subparsers(dest="cmd")
    sub.add_parser("doctor", help="Check for required tools (ffmpeg/fluidsynth).")

    imp = sub.add_parser("import-midi", help="Convert a MIDI file (tracks, markers, tempo) to a project JSON.")
    imp.add_argument("input", help="MIDI file (.mid)")
    imp.add_argument("output", help="Project JSON to write")
    imp.add_argument("--name", default=None, help="Project name (default: file stem)")

    render = sub.add_parser("render", help="Render one file per marker and write note metadata.")
    render.add_argument("project", help="Project JSON (.json) or MIDI file (.mid)")
    render.add_argument("--config", default=None, help="Render config (.yaml/.json)")
    render.add_argument("--soundfont", default=None, help="Path to a SoundFont (.sf2)")
    render.add_argument("--out-dir", default=None, dest="out_dir", help="Where renders go (default: project dir)")
    render.add_argument("--dry-run", action="store_true", dest="dry_run", help="Only write metadata, no audio")

    # arguments are handled by hitcut.cli.trim (see main)
    sub.add_parser("trim", help="Trim rendered files to their note onsets: trim [input_csv]", add_help=False)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # global flags may precede `trim`; everything after it belongs to hitcut.cli.trim
    head = 0
    while head < len(argv) and argv[head] in GLOBAL_FLAGS:
        head += 1
    if argv[head : head + 1] == ["trim"]:
        from hitcut.cli.trim import main as trim_main

        return trim_main(argv[head + 1 :], prog="hitcut trim", verbose=head > 0)

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "version", False):
        try:
            from importlib.metadata import version

            v = version("hitcut")
        except Exception:
            v = "0.0.0"
        print(f"hitcut {v}")
        return 0

    from hitcut.util.logs import configure_console

    configure_console(verbose=args.verbose)

    if args.cmd == "doctor":
        res = _doctor()
        status = "OK" if res.ok else "MISSING_DEPS"
        print(f"hitcut doctor: {status}")
        for n in res.notes:
            print(f"- {n}")
        if not res.ok:
            print("\nLinux (Debian/Ubuntu): sudo apt-get install ffmpeg fluidsynth fluid-soundfont-gm")
            print("macOS: brew install ffmpeg fluidsynth")
        return 0 if res.ok else 1

    if args.cmd == "import-midi":
        from hitcut.io.midi import project_from_midi
        from hitcut.io.project_json import save_project

        project = project_from_midi(args.input, name=args.name)
        out = save_project(project, args.output)
        print(f"wrote {out}: {len(project.tracks)} tracks, {len(project.markers)} markers")
        return 0

    if args.cmd == "render":
        from hitcut.cli.render import render_project
        from hitcut.util.config import load_config

        if not Path(args.project).exists():
            raise SystemExit(f"ERROR: project not found: {args.project}")
        if not args.dry_run and not args.soundfont:
            raise SystemExit("ERROR: render requires --soundfont <path-to.sf2> (or --dry-run)")
        if not args.dry_run and not _which("fluidsynth"):
            raise SystemExit("ERROR: fluidsynth is required for renders. Run: hitcut doctor")
        if not args.dry_run and not _which("ffmpeg"):
            raise SystemExit("ERROR: ffmpeg is required for renders. Run: hitcut doctor")

        try:
            cfg = load_config(args.config)
        except Exception as e:
            raise SystemExit(f"ERROR: bad config ({e})")

        res = render_project(
            args.project,
            cfg,
            soundfont=args.soundfont,
            out_dir=args.out_dir,
            dry_run=args.dry_run,
        )
        print(f"metadata: {res.metadata_path} ({len(res.results)} markers)")
        if res.failures and not args.dry_run:
            print(f"renders failed: {res.failures}")
            return 1
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
