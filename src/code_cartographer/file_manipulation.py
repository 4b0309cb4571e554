from __future__ import annotations

import asyncio
import os
import stat
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from code_cartographer.config import guess_file_type
from code_cartographer.logging import get_logger
from code_cartographer.models import DirectoryNode, FileNode, ordered_children

if TYPE_CHECKING:
    from collections.abc import Sequence

    import structlog

    from code_cartographer.policy import InclusionPolicy

logger = get_logger("walker")


def file_extension(path: Path | str) -> str:
    """Return the extension with its leading dot, or an empty string."""
    return Path(path).suffix


def now_iso() -> str:
    """Return the current date and time in ISO 8601 format with timezone.

    Returns:
        str: the current date and time in ISO 8601 format with timezone
    """
    return datetime.now(UTC).astimezone().isoformat(timespec="seconds")


def _scan_directory(directory: Path) -> list[tuple[Path, bool]]:
    with os.scandir(directory) as it:
        # symlinked directories are not followed
        return [
            (Path(entry.path), entry.is_dir(follow_symlinks=False))
            for entry in it
            if not (entry.is_symlink() and entry.is_dir())
        ]


async def walk_files(
    root: Path,
    policy: InclusionPolicy,
    *,
    log: structlog.BoundLogger | None = None,
) -> list[Path]:
    """Collect files under ``root``, pruning excluded directories.

    Sibling directories are scanned concurrently and joined; an excluded
    directory is never descended into. A directory that cannot be listed is
    logged and treated as empty.

    Args:
        root (Path): the directory to walk
        policy (InclusionPolicy): decides which directories are pruned
        log (structlog.BoundLogger | None): logger for directory errors

    Returns:
        list[Path]: every file found, sorted
    """
    log = log or logger

    async def walk(directory: Path) -> list[Path]:
        try:
            entries = await asyncio.to_thread(_scan_directory, directory)
        except OSError as exc:
            log.warning("directory_unreadable", path=str(directory), error=str(exc))
            return []
        files: list[Path] = []
        subdirs: list[Path] = []
        for path, is_dir in entries:
            if is_dir:
                if policy.is_excluded(path, is_dir=True):
                    log.debug("directory_pruned", path=str(path))
                    continue
                subdirs.append(path)
            else:
                files.append(path)
        for nested in await asyncio.gather(*(walk(d) for d in subdirs)):
            files.extend(nested)
        return files

    return sorted(await walk(Path(root)))


async def collect_candidates(
    root: Path,
    policy: InclusionPolicy,
    explicit: Sequence[Path | str] | None = None,
    *,
    log: structlog.BoundLogger | None = None,
) -> list[Path]:
    """Resolve the candidate file list of a run.

    With an explicit selection the recursive enumeration of ``root`` is
    skipped; selected directories are expanded with the same pruned walk.

    Args:
        root (Path): the project root
        policy (InclusionPolicy): prunes excluded directories
        explicit (Sequence[Path | str] | None): manual selection, absolute or
            relative to ``root``
        log (structlog.BoundLogger | None): logger for walk errors

    Returns:
        list[Path]: absolute candidate paths, without duplicates
    """
    if not explicit:
        return await walk_files(root, policy, log=log)
    out: list[Path] = []
    for item in explicit:
        path = Path(os.path.abspath(Path(root) / item))
        if path.is_dir():
            out.extend(await walk_files(path, policy, log=log))
        else:
            out.append(path)
    return list(dict.fromkeys(out))


class TreeBuilder:
    """Builds the structure tree with a path-keyed index of directory nodes.

    Inserting a path costs one dictionary lookup per segment; directories are
    created the first time one of their descendants is inserted.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.tree = DirectoryNode(name=self.root.name or str(self.root), path=".")
        self._dirs: dict[str, DirectoryNode] = {".": self.tree}
        self._files: set[str] = set()

    def _directory(self, rel: str) -> DirectoryNode:
        node = self._dirs.get(rel)
        if node is not None:
            return node
        parent_rel, _, name = rel.rpartition("/")
        parent = self._directory(parent_rel or ".")
        node = DirectoryNode(name=name, path=rel)
        parent.children.append(node)
        self._dirs[rel] = node
        return node

    def insert(self, rel: str, *, size: int) -> None:
        """Insert a root-relative file path and its missing parent directories.

        Args:
            rel (str): POSIX path relative to the root
            size (int): file size in bytes
        """
        rel = rel.strip("/")
        if not rel or rel == "." or rel in self._files:
            return
        parent_rel, _, name = rel.rpartition("/")
        parent = self._directory(parent_rel or ".")
        parent.children.append(
            FileNode(
                name=name,
                path=rel,
                size=size,
                extension=file_extension(name),
                file_type=guess_file_type(name),
            ),
        )
        self._files.add(rel)

    def snapshot(self) -> DirectoryNode:
        """Return the finished tree with every child list in render order."""

        def order(node: DirectoryNode) -> DirectoryNode:
            children = [order(c) if isinstance(c, DirectoryNode) else c for c in ordered_children(node)]
            return node.model_copy(update={"children": children})

        return order(self.tree)


async def build_structure(
    root: Path,
    policy: InclusionPolicy,
    explicit: Sequence[Path | str] | None = None,
    *,
    candidates: Sequence[Path] | None = None,
    log: structlog.BoundLogger | None = None,
) -> DirectoryNode:
    """Walk ``root`` (or the explicit selection) and build its structure tree.

    Args:
        root (Path): the project root
        policy (InclusionPolicy): filters candidate paths
        explicit (Sequence[Path | str] | None): manual selection
        candidates (Sequence[Path] | None): precomputed candidate list
        log (structlog.BoundLogger | None): logger for walk errors

    Returns:
        DirectoryNode: the root node of the tree
    """
    log = log or logger
    if candidates is None:
        candidates = await collect_candidates(root, policy, explicit, log=log)
    builder = TreeBuilder(policy.root)
    for path in candidates:
        rel = policy.relative(path)
        if rel is None or not policy.should_include(path):
            continue
        try:
            st = path.stat()
        except OSError as exc:
            log.warning("file_unreadable", path=rel, error=str(exc))
            continue
        # directories only appear as parents of included files
        if stat.S_ISREG(st.st_mode):
            builder.insert(rel, size=st.st_size)
    return builder.snapshot()


def build_tree_lines(root: DirectoryNode) -> list[str]:
    """Build a visual tree representation of a structure tree.

    Args:
        root (DirectoryNode): the root of the tree

    Returns:
        list[str]: a list of strings representing the tree structure, suitable for printing
    """
    lines: list[str] = [root.name + "/"]

    def walk(node: DirectoryNode, prefix: str) -> None:
        entries = ordered_children(node)
        for idx, child in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            is_dir = isinstance(child, DirectoryNode)
            lines.append(prefix + branch + child.name + ("/" if is_dir else ""))
            if is_dir:
                ext = "    " if last else "│   "
                walk(child, prefix + ext)

    walk(root, "")
    return lines
