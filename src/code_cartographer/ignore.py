"""Gitignore-style rules compiled into a single path predicate."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import pathspec

from code_cartographer.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    import structlog

    IgnorePredicate = Callable[..., bool]

logger = get_logger("ignore")


def never_ignored(_path: Path | str, *, is_dir: bool | None = None) -> bool:  # noqa: ARG001
    """Predicate used when no ignore rules are available."""
    return False


def read_ignore_rules(lines: Iterable[str]) -> list[str]:
    """Keep the pattern lines of an ignore file.

    Blank lines and ``#`` comments are dropped; surrounding whitespace is stripped.

    Args:
        lines (Iterable[str]): raw lines of the ignore file

    Returns:
        list[str]: the pattern rules, in file order
    """
    rules: list[str] = []
    for line in lines:
        rule = line.strip()
        if not rule or rule.startswith("#"):
            continue
        rules.append(rule)
    return rules


def compile_ignore(text: str, base_dir: Path) -> IgnorePredicate:
    """Compile ignore-file contents into a predicate.

    The predicate makes the candidate relative to ``base_dir`` and matches it
    with gitignore semantics; hidden entries are matched like any other.
    Directories are tested with a trailing slash so that rules such as
    ``dist/`` apply to the directory itself.

    Args:
        text (str): the contents of the ignore file
        base_dir (Path): the directory holding the ignore file

    Returns:
        IgnorePredicate: ``predicate(path, is_dir=None) -> bool``; ``is_dir`` is
            looked up on disk when not given
    """
    rules = read_ignore_rules(text.splitlines())
    if not rules:
        return never_ignored
    spec = pathspec.GitIgnoreSpec.from_lines(rules)
    base = Path(os.path.abspath(base_dir))

    def predicate(path: Path | str, *, is_dir: bool | None = None) -> bool:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = base / candidate
        try:
            rel = Path(os.path.abspath(candidate)).relative_to(base).as_posix()
        except ValueError:
            return False
        if rel in {"", "."}:
            return False
        if spec.match_file(rel):
            return True
        if is_dir is None:
            is_dir = candidate.is_dir()
        return is_dir and spec.match_file(rel + "/")

    return predicate


def load_ignore_file(
    ignore_path: Path,
    *,
    log: structlog.BoundLogger | None = None,
) -> IgnorePredicate:
    """Read and compile an ignore file.

    A missing or unreadable file is not an error: the constant-false
    predicate is returned instead.

    Args:
        ignore_path (Path): the ignore file, usually ``<root>/.gitignore``
        log (structlog.BoundLogger | None): logger to report problems to

    Returns:
        IgnorePredicate: the compiled predicate
    """
    log = log or logger
    if not ignore_path.is_file():
        return never_ignored
    try:
        text = ignore_path.read_text(encoding="utf-8", errors="replace")
        return compile_ignore(text, ignore_path.parent)
    except (OSError, ValueError) as exc:
        log.warning("ignore_file_unreadable", path=str(ignore_path), error=str(exc))
        return never_ignored
