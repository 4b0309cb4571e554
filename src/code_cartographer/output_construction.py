from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import TYPE_CHECKING

from code_cartographer.config import OutputFormat
from code_cartographer.exceptions import OutputWriteError
from code_cartographer.file_manipulation import build_tree_lines
from code_cartographer.models import DirectoryNode, FileNode, iter_nodes

if TYPE_CHECKING:
    from code_cartographer.models import OutputPayload

RULE_WIDTH = 80

_SUFFIX_FORMATS: dict[str, OutputFormat] = {
    ".json": OutputFormat.JSON,
    ".txt": OutputFormat.TEXT,
    ".csv": OutputFormat.CSV,
}


def infer_format(path: Path | str, default: OutputFormat = OutputFormat.JSON) -> OutputFormat:
    """Pick the output format matching the file extension of ``path``."""
    return _SUFFIX_FORMATS.get(Path(path).suffix.lower(), default)


def format_kb(size: int) -> str:
    return f"{round(size / 1024, 2)} KB"


def build_json(payload: OutputPayload) -> str:
    """Lossless JSON encoding; ``OutputPayload.model_validate_json`` reads it back."""
    return payload.model_dump_json(indent=2) + "\n"


def build_text(payload: OutputPayload) -> str:
    """Build a human-readable report of the payload.

    The report has a header block, the rendered tree (when structure was
    requested), each documented file under a path/size banner, and a
    statistics footer.

    Args:
        payload (OutputPayload): the assembled run

    Returns:
        str: the report
    """
    info = payload.project_info
    stats = payload.statistics
    rule = "=" * RULE_WIDTH
    out = io.StringIO()
    out.write("Project Documentation\n")
    out.write(f"{rule}\n")
    out.write(f"Project Path: {info.path}\n")
    out.write(f"Generated on: {info.generated_on}\n")
    out.write(f"Documentation Type: {info.documentation_type}\n")
    out.write(f"{rule}\n\n")

    if payload.file_structure is not None:
        out.write("File Structure:\n")
        out.write(f"{rule}\n")
        out.write("\n".join(build_tree_lines(payload.file_structure)))
        out.write(f"\n{'-' * RULE_WIDTH}\n\n")

    if payload.files:
        out.write("File Contents:\n")
        out.write(f"{rule}\n")
        for rec in payload.files:
            out.write(f"\n## File: {rec.path}\n")
            out.write(f"Size: {format_kb(rec.size)}\n")
            out.write(f"{rule}\n\n")
            out.write(rec.content)
            out.write("\n\n")

    out.write("Statistics:\n")
    out.write(f"{rule}\n")
    out.write(f"Total files: {stats.total_files}\n")
    out.write(f"Total size: {format_kb(stats.total_size)}\n")
    out.write(f"Documented files: {stats.documented_files}\n")
    out.write(f"Documented size: {format_kb(stats.documented_size)}\n")
    out.write(f"Average file size: {format_kb(round(stats.average_file_size))}\n")
    out.write(f"Estimated tokens: {stats.token_estimate}\n")
    out.write(f"Duration: {stats.duration_seconds:.2f}s\n")
    if stats.largest_file is not None:
        out.write(f"Largest file: {stats.largest_file.path} ({format_kb(stats.largest_file.size)})\n")
    if stats.file_types:
        out.write("File types:\n")
        for ext, count in stats.file_types.items():
            out.write(f"  {ext or 'No extension'}: {count}\n")
    return out.getvalue()


def build_csv(payload: OutputPayload) -> str:
    """Build the tabular encoding of the payload.

    Blocks, separated by an empty line: metadata ``key,value`` pairs, one row
    per tree node (when structure was requested), one row per documented file
    (when content was requested), and the file-type histogram. Fields holding
    commas, quotes or newlines are quoted with inner quotes doubled.

    Args:
        payload (OutputPayload): the assembled run

    Returns:
        str: the CSV text
    """
    info = payload.project_info
    stats = payload.statistics
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")

    writer.writerow(["key", "value"])
    writer.writerows(
        [
            ["path", info.path],
            ["generated_on", info.generated_on],
            ["documentation_type", str(info.documentation_type)],
            ["output_format", str(info.output_format)],
            ["total_files", info.total_files],
            ["total_size", info.total_size],
            ["documented_files", info.documented_files],
            ["documented_size", info.documented_size],
            ["duration_seconds", info.duration_seconds],
            ["token_estimate", info.token_estimate],
        ],
    )

    if payload.file_structure is not None:
        out.write("\n")
        writer.writerow(["type", "name", "path", "size", "extension"])
        for node in iter_nodes(payload.file_structure):
            if isinstance(node, FileNode):
                writer.writerow([node.type, node.name, node.path, node.size, node.extension])
            elif isinstance(node, DirectoryNode):
                writer.writerow([node.type, node.name, node.path, "", ""])

    if payload.files:
        out.write("\n")
        writer.writerow(["path", "size", "tokens"])
        for rec in payload.files:
            writer.writerow([rec.path, rec.size, rec.tokens])

    out.write("\n")
    writer.writerow(["extension", "count"])
    for ext, count in stats.file_types.items():
        writer.writerow([ext, count])
    return out.getvalue()


_BUILDERS = {
    OutputFormat.JSON: build_json,
    OutputFormat.TEXT: build_text,
    OutputFormat.CSV: build_csv,
}


def render_payload(payload: OutputPayload, fmt: OutputFormat | str) -> str:
    """Serialize the payload; unknown formats fall back to JSON."""
    try:
        builder = _BUILDERS[OutputFormat(fmt)]
    except ValueError:
        builder = build_json
    return builder(payload)


def write_output(payload: OutputPayload, output_path: Path, fmt: OutputFormat | str) -> Path:
    """Serialize and write the payload, creating parent directories.

    Args:
        payload (OutputPayload): the assembled run
        output_path (Path): the destination file
        fmt (OutputFormat | str): the output encoding

    Raises:
        OutputWriteError: if the directory or the file cannot be written;
            the original ``OSError`` is chained as the cause.

    Returns:
        Path: the written file
    """
    content = render_payload(payload, fmt)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(path=output_path, message=f"cannot write {output_path}: {exc}") from exc
    return output_path
