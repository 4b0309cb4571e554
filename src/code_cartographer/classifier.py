from __future__ import annotations

import math
import stat
from enum import StrEnum, auto
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from pathlib import Path

BINARY_SNIFF_BYTES = 4096
GENERATED_SNIFF_LINES = 5
CHARS_PER_TOKEN = 4

TEXT_ENCODINGS: tuple[str, ...] = ("utf-8", "latin-1", "utf-16-le")

GENERATED_MARKERS: tuple[str, ...] = (
    "// generated code",
    "/* generated code",
    "@generated",
    "// generated code - do not modify",
    "# generated by",
    "// auto-generated",
    "# this is a generated file",
    "generated code",
    "auto-generated",
    "do not modify",
)


class SkipReason(StrEnum):
    """Why a file's content was left out of the document."""

    NOT_A_FILE = auto()
    TOO_LARGE = auto()
    BINARY = auto()
    UNDECODABLE = auto()
    GENERATED = auto()


class ContentResult(BaseModel):
    """Outcome of reading one candidate file.

    ``content`` is None whenever a gate rejected the file; the path may still
    appear in the structure tree.
    """

    model_config = ConfigDict(frozen=True)

    size: int
    content: str | None = None
    skipped: SkipReason | None = None


def is_binary(data: bytes) -> bool:
    """Null-byte heuristic over the first 4 KiB.

    Args:
        data (bytes): raw file content

    Returns:
        bool: True if a zero byte appears within the first 4096 bytes
    """
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def decode(data: bytes) -> str | None:
    """Decode bytes with the first encoding of ``TEXT_ENCODINGS`` that accepts them."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return None


def is_generated(text: str) -> bool:
    """Look for generated-code markers in the first five lines, ignoring case."""
    head = "\n".join(text.split("\n")[:GENERATED_SNIFF_LINES]).lower()
    return any(marker in head for marker in GENERATED_MARKERS)


def estimate_tokens(text: str) -> int:
    """Characters divided by four, rounded up."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def read_content(
    path: Path,
    *,
    max_size: int,
    skip_binary: bool = True,
    skip_generated: bool = True,
) -> ContentResult:
    """Read a file through the size, binary, decoding and generated-code gates.

    Files larger than ``max_size`` are never opened.

    Args:
        path (Path): the file to read
        max_size (int): effective size limit in bytes for this path
        skip_binary (bool): reject content that looks binary
        skip_generated (bool): reject content carrying generated-code markers

    Returns:
        ContentResult: the decoded content, or the reason it was skipped
    """
    st = path.stat()
    if not stat.S_ISREG(st.st_mode):
        return ContentResult(size=0, skipped=SkipReason.NOT_A_FILE)
    if st.st_size > max_size:
        return ContentResult(size=st.st_size, skipped=SkipReason.TOO_LARGE)

    data = path.read_bytes()
    if skip_binary and is_binary(data):
        return ContentResult(size=st.st_size, skipped=SkipReason.BINARY)

    text = decode(data)
    if text is None:
        return ContentResult(size=st.st_size, skipped=SkipReason.UNDECODABLE)
    if skip_generated and is_generated(text):
        return ContentResult(size=st.st_size, skipped=SkipReason.GENERATED)
    return ContentResult(size=st.st_size, content=text)
