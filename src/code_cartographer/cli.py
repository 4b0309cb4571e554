"""
code_cartographer: Snapshot a project directory for an LLM.

Overview
--------
Walks a project, filters it with include/exclude globs, ``.gitignore`` rules,
size limits and per-file overrides, and writes one document describing the
project:

1) **JSON (`--format json`)**: lossless structured payload (tree, files, statistics).
2) **Text (`--format txt`)**: readable report with a box-drawn tree and file contents.
3) **CSV (`--format csv`)**: metadata, one row per tree node, files and a type histogram.

Settings come from built-in defaults, ``CARTOGRAPHER_*`` environment variables
(or a ``.env`` file) and command-line flags; a ``cartographer.config.json`` in
the project wins over all of them unless ``--no-config-file`` is given.

Usage
-----
    code-cartographer generate --repo . --output documentation.txt
    code-cartographer generate --type structure --format csv --output tree.csv
    code-cartographer analyze --repo .
    code-cartographer init-config --repo .
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from code_cartographer import __version__
from code_cartographer.cartographer import Cartographer, create_initial_config, quick_analyze
from code_cartographer.exceptions import OutputWriteError
from code_cartographer.logging import setup_logging
from code_cartographer.output_construction import infer_format
from code_cartographer.policy import InclusionPolicy
from code_cartographer.progress import ProgressChannel
from code_cartographer.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from code_cartographer.models import QuickAnalysis

COMMANDS = ("generate", "analyze", "init-config")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="code-cartographer",
        description="Document a project for LLM consumption (json/txt/csv).",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--repo", type=str, default=".", help="Project root.")
    common.add_argument("--log-file", type=str, default=None, help="Log file path.")
    common.add_argument("--debug", dest="debug_mode", action="store_true", default=None, help="Debug logging.")

    gen = sub.add_parser("generate", parents=[common], help="Generate the documentation file.")
    gen.add_argument("--output", type=str, default=None, help="Output file (.json, .txt or .csv).")
    gen.add_argument(
        "--format",
        type=str,
        choices=["json", "txt", "csv"],
        default=None,
        help="Force format.",
    )
    gen.add_argument(
        "--type",
        dest="documentation_type",
        type=str,
        choices=["structure", "documentation", "both"],
        default=None,
        help="What to document.",
    )
    gen.add_argument(
        "--include-item",
        dest="include_items",
        action="append",
        default=None,
        help="Document only this path (repeatable).",
    )
    gen.add_argument(
        "--ignore-pattern",
        dest="ignore_patterns",
        action="append",
        default=None,
        help="Extra exclude glob (repeatable).",
    )
    gen.add_argument("--max-file-size", type=int, default=None, help="Max bytes per documented file.")
    gen.add_argument(
        "--no-config-file",
        dest="use_config_file",
        action="store_false",
        default=None,
        help="Ignore cartographer.config.json.",
    )

    sub.add_parser("analyze", parents=[common], help="Quick content-free analysis.")
    sub.add_parser("init-config", parents=[common], help="Write cartographer.config.json with defaults.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> tuple[str, Settings, argparse.Namespace]:
    """Parse the command line into a command name, merged settings and the raw flags.

    A missing command defaults to ``generate``. The raw flags are kept apart
    from the settings: only a format or type given on the command line beats
    the project configuration file.
    """
    args_list = list(sys.argv[1:] if argv is None else argv)
    if not args_list or (args_list[0] not in COMMANDS and args_list[0] not in {"-h", "--help", "--version"}):
        args_list.insert(0, "generate")
    args = build_parser().parse_args(args_list)
    values = {k: v for k, v in vars(args).items() if k != "command"}
    values["repo"] = Path(values["repo"]).resolve()
    if values.get("output"):
        values["output"] = Path(values["output"])
    return args.command, Settings.from_env(**values), args


def format_analysis(root: Path, stats: QuickAnalysis) -> str:
    lines = [
        "# Code Cartographer - Project Analysis",
        "",
        f"Project: {root}",
        f"Total Files: {stats.total_files}",
        "",
        "## File Types:",
    ]
    lines.extend(f"{ext or 'No extension'}: {count} files" for ext, count in stats.file_types.items())
    lines.extend(["", "## Directories:"])
    lines.extend(f"{name}: {count} files" for name, count in stats.directories.items())
    return "\n".join(lines)


def _print_progress(message: str, percent: int) -> None:
    print(f"[{percent:3d}%] {message}", file=sys.stderr)


def run_generate(
    settings: Settings,
    *,
    output_format: str | None = None,
    documentation_type: str | None = None,
) -> int:
    """Run one documentation pass.

    ``output_format`` and ``documentation_type`` are the command-line flags;
    when absent the policy decides, and an explicit ``--output`` picks its
    format from the file suffix.
    """
    repo = settings.repo
    policy = InclusionPolicy.load(repo, settings)
    fmt = output_format
    if fmt is None and settings.output is not None:
        fmt = infer_format(settings.output, default=policy.output_format())
    cartographer = Cartographer(repo, policy)
    try:
        payload = cartographer.document(
            settings.output,
            output_format=fmt,
            documentation_type=documentation_type,
            include_items=settings.include_items or None,
            progress=ProgressChannel(_print_progress),
        )
    except OutputWriteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    out_path = settings.output or policy.output_path()
    info = payload.project_info
    print(
        f"Wrote {out_path} format={info.output_format} files={info.documented_files} "
        f"tokens={info.token_estimate}",
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    command, settings, args = parse_args(argv)
    level = logging.DEBUG if settings.debug_mode else logging.INFO
    setup_logging(settings.log_file or None, level=level, force=True)

    if command == "analyze":
        stats = quick_analyze(settings.repo, InclusionPolicy.load(settings.repo, settings))
        print(format_analysis(settings.repo, stats))
        return 0
    if command == "init-config":
        path = create_initial_config(settings.repo, settings)
        print(f"Created configuration file at {path}")
        return 0
    return run_generate(
        settings,
        output_format=getattr(args, "format", None),
        documentation_type=getattr(args, "documentation_type", None),
    )


if __name__ == "__main__":
    raise SystemExit(main())
