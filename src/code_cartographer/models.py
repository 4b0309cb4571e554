from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from code_cartographer.config import DocumentationType, FileRecord, FileType, OutputFormat


class FileNode(BaseModel):
    """Leaf of the structure tree."""

    type: Literal["file"] = "file"
    name: str
    path: str
    size: int = Field(0, ge=0)
    extension: str = ""
    file_type: FileType = FileType.OTHER


class DirectoryNode(BaseModel):
    """Inner node of the structure tree; children are files or directories."""

    type: Literal["directory"] = "directory"
    name: str
    path: str
    children: list[TreeNode] = Field(default_factory=list)


TreeNode = Annotated[FileNode | DirectoryNode, Field(discriminator="type")]

DirectoryNode.model_rebuild()


def ordered_children(node: DirectoryNode) -> list[FileNode | DirectoryNode]:
    """Return children with directories first, then by case-sensitive name."""
    return sorted(node.children, key=lambda child: (child.type != "directory", child.name))


def iter_nodes(node: FileNode | DirectoryNode) -> list[FileNode | DirectoryNode]:
    """Flatten a tree depth-first, parents before children, in render order."""
    out: list[FileNode | DirectoryNode] = [node]
    if isinstance(node, DirectoryNode):
        for child in ordered_children(node):
            out.extend(iter_nodes(child))
    return out


class LargestFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    size: int


class RunStatistics(BaseModel):
    """Frozen statistics of one finished run."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_size: int = 0
    documented_files: int = 0
    documented_size: int = 0
    file_types: dict[str, int] = Field(default_factory=dict)
    largest_file: LargestFile | None = None
    token_estimate: int = 0
    started_at: datetime
    finished_at: datetime
    duration_seconds: float = 0.0
    average_file_size: float = 0.0


class StatisticsAccumulator:
    """Mutable per-run accumulator.

    Every fold is a sum, a max or a counter increment, so the order in which
    concurrently processed files report back does not change the result.
    """

    def __init__(self) -> None:
        self.started_at = datetime.now(UTC)
        self.total_files = 0
        self.total_size = 0
        self.documented_files = 0
        self.documented_size = 0
        self.file_types: Counter[str] = Counter()
        self.largest: tuple[int, str] | None = None
        self.token_estimate = 0
        self._frozen: RunStatistics | None = None

    def add_candidate(self, size: int) -> None:
        self.total_files += 1
        self.total_size += size

    def add_documented(self, record: FileRecord) -> None:
        self.documented_files += 1
        self.documented_size += record.size
        self.file_types[record.extension] += 1
        self.token_estimate += record.tokens
        # ties resolved on path so the winner does not depend on completion order
        if (
            self.largest is None
            or record.size > self.largest[0]
            or (record.size == self.largest[0] and record.path < self.largest[1])
        ):
            self.largest = (record.size, record.path)

    def finalize(self) -> RunStatistics:
        """Freeze the accumulator. May only be called once.

        Raises:
            RuntimeError: if the statistics were already finalized.

        Returns:
            RunStatistics: the frozen statistics.
        """
        if self._frozen is not None:
            msg = "statistics already finalized"
            raise RuntimeError(msg)
        finished_at = datetime.now(UTC)
        average = self.documented_size / self.documented_files if self.documented_files else 0.0
        self._frozen = RunStatistics(
            total_files=self.total_files,
            total_size=self.total_size,
            documented_files=self.documented_files,
            documented_size=self.documented_size,
            file_types=dict(sorted(self.file_types.items())),
            largest_file=LargestFile(path=self.largest[1], size=self.largest[0]) if self.largest else None,
            token_estimate=self.token_estimate,
            started_at=self.started_at,
            finished_at=finished_at,
            duration_seconds=(finished_at - self.started_at).total_seconds(),
            average_file_size=round(average, 2),
        )
        return self._frozen


class ProjectInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    generated_on: str
    documentation_type: DocumentationType
    output_format: OutputFormat
    total_files: int
    total_size: int
    documented_files: int
    documented_size: int
    duration_seconds: float
    token_estimate: int


class OutputPayload(BaseModel):
    """The assembled snapshot of one run; never mutated after construction."""

    model_config = ConfigDict(frozen=True)

    project_info: ProjectInfo
    file_structure: DirectoryNode | None = None
    files: list[FileRecord] = Field(default_factory=list)
    statistics: RunStatistics


class QuickAnalysis(BaseModel):
    """Content-free summary of a project."""

    total_files: int = 0
    file_types: dict[str, int] = Field(default_factory=dict)
    directories: dict[str, int] = Field(default_factory=dict)
