"""Document assembly: walk, filter, classify, aggregate and serialize one run."""

from __future__ import annotations

import asyncio
import os
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from code_cartographer.classifier import SkipReason, estimate_tokens, read_content
from code_cartographer.config import DocumentationType, FileRecord, OutputFormat
from code_cartographer.exceptions import RunCancelledError
from code_cartographer.file_manipulation import (
    build_structure,
    collect_candidates,
    file_extension,
    now_iso,
    walk_files,
)
from code_cartographer.logging import get_logger
from code_cartographer.models import (
    FileNode,
    OutputPayload,
    ProjectInfo,
    QuickAnalysis,
    StatisticsAccumulator,
    iter_nodes,
)
from code_cartographer.output_construction import write_output
from code_cartographer.policy import InclusionPolicy
from code_cartographer.progress import ProgressChannel

if TYPE_CHECKING:
    from collections.abc import Sequence

    import structlog

    from code_cartographer.progress import CancellationToken, ProgressCallback
    from code_cartographer.settings import Settings

BATCH_SIZE = 20

logger = get_logger("cartographer")


class _DocumentationRun:
    """Mutable state of a single run; never shared between runs."""

    def __init__(self, policy: InclusionPolicy, log: structlog.BoundLogger) -> None:
        self.policy = policy
        self.log = log
        self.stats = StatisticsAccumulator()
        self.processed: set[str] = set()
        self.records: list[FileRecord] = []

    async def process_file(self, path: Path) -> FileRecord | None:
        key = os.path.abspath(path)
        # checked and marked before the first await, so concurrent duplicates see it
        if key in self.processed:
            return None
        self.processed.add(key)

        rel = self.policy.relative(key)
        if rel is None or not self.policy.should_include(key):
            return None
        try:
            result = await asyncio.to_thread(
                read_content,
                Path(key),
                max_size=self.policy.max_size_for(key),
                skip_binary=self.policy.skip_binary(),
                skip_generated=self.policy.skip_generated(),
            )
        except Exception as exc:  # noqa: BLE001
            self.log.warning("file_skipped", path=rel, error=str(exc))
            return None

        if result.skipped is SkipReason.NOT_A_FILE:
            return None
        self.stats.add_candidate(result.size)
        if result.content is None:
            self.log.info("file_skipped", path=rel, reason=str(result.skipped))
            return None

        record = FileRecord(
            path=rel,
            content=result.content,
            size=result.size,
            extension=file_extension(rel),
            tokens=estimate_tokens(result.content),
        )
        self.stats.add_documented(record)
        return record


class Cartographer:
    """Builds documentation snapshots of one project root.

    Each call to :meth:`document` is an independent run with its own
    statistics and processed-path set.
    """

    def __init__(
        self,
        root: Path | str,
        policy: InclusionPolicy | None = None,
        *,
        settings: Settings | None = None,
        log: structlog.BoundLogger | None = None,
    ) -> None:
        self.root = Path(os.path.abspath(root))
        self.log = log or logger
        self.policy = policy or InclusionPolicy.load(self.root, settings, log=self.log)

    def document(
        self,
        output_path: Path | None = None,
        *,
        output_format: OutputFormat | str | None = None,
        documentation_type: DocumentationType | str | None = None,
        include_items: Sequence[Path | str] | None = None,
        progress: ProgressChannel | ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
        write: bool = True,
    ) -> OutputPayload:
        """Run :meth:`adocument` on a fresh event loop."""
        return asyncio.run(
            self.adocument(
                output_path,
                output_format=output_format,
                documentation_type=documentation_type,
                include_items=include_items,
                progress=progress,
                cancel=cancel,
                write=write,
            ),
        )

    async def adocument(
        self,
        output_path: Path | None = None,
        *,
        output_format: OutputFormat | str | None = None,
        documentation_type: DocumentationType | str | None = None,
        include_items: Sequence[Path | str] | None = None,
        progress: ProgressChannel | ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
        write: bool = True,
    ) -> OutputPayload:
        """Generate the documentation payload and write it.

        Phases run strictly in order: structure (if requested), content (if
        requested), finalize, serialize. Per-file and per-directory errors are
        logged and skipped; only cancellation and write failures propagate.

        Args:
            output_path (Path | None): destination file; defaults to the configured path
            output_format (OutputFormat | str | None): defaults to the configured format
            documentation_type (DocumentationType | str | None): defaults to the configured type
            include_items (Sequence[Path | str] | None): manual selection replacing the walk
            progress (ProgressChannel | ProgressCallback | None): progress subscriber(s)
            cancel (CancellationToken | None): soft cancellation, checked between batches
            write (bool): write the serialized payload to ``output_path``

        Raises:
            RunCancelledError: if ``cancel`` was triggered before the content phase ended.
            OutputWriteError: if the output cannot be written.

        Returns:
            OutputPayload: the assembled snapshot
        """
        channel = progress if isinstance(progress, ProgressChannel) else ProgressChannel()
        if progress is not None and not isinstance(progress, ProgressChannel):
            channel.subscribe(progress)

        doc_type = DocumentationType(documentation_type or self.policy.documentation_type())
        fmt = OutputFormat(output_format or self.policy.output_format())
        target = Path(output_path) if output_path is not None else self.policy.output_path()
        run_log = self.log.bind(root=str(self.root))
        run = _DocumentationRun(self.policy, run_log)
        # the output file of an earlier run is not part of the project
        run.processed.add(os.path.abspath(target))

        run_log.info("run_started", documentation_type=str(doc_type), output_format=str(fmt))
        channel.publish("Starting documentation process...", 0)

        candidates: list[Path] | None = None
        structure = None
        if doc_type.wants_structure:
            channel.publish("Analyzing file structure...", 10)
            candidates = await collect_candidates(self.root, self.policy, include_items, log=run_log)
            candidates = [p for p in candidates if os.path.abspath(p) not in run.processed]
            structure = await build_structure(self.root, self.policy, candidates=candidates, log=run_log)

        if doc_type.wants_content:
            channel.publish("Processing files...", 30)
            if candidates is None:
                candidates = await collect_candidates(self.root, self.policy, include_items, log=run_log)
            await self._process_batches(run, candidates, channel, cancel)
        elif structure is not None:
            for node in iter_nodes(structure):
                if isinstance(node, FileNode):
                    run.stats.add_candidate(node.size)

        statistics = run.stats.finalize()
        payload = OutputPayload(
            project_info=ProjectInfo(
                path=str(self.root),
                generated_on=now_iso(),
                documentation_type=doc_type,
                output_format=fmt,
                total_files=statistics.total_files,
                total_size=statistics.total_size,
                documented_files=statistics.documented_files,
                documented_size=statistics.documented_size,
                duration_seconds=statistics.duration_seconds,
                token_estimate=statistics.token_estimate,
            ),
            file_structure=structure,
            files=sorted(run.records, key=lambda rec: rec.path),
            statistics=statistics,
        )

        if write:
            channel.publish("Generating output...", 90)
            await asyncio.to_thread(write_output, payload, target, fmt)
            run_log.info("output_written", path=str(target))

        channel.publish("Documentation completed!", 100)
        run_log.info(
            "run_finished",
            documented_files=statistics.documented_files,
            total_files=statistics.total_files,
            token_estimate=statistics.token_estimate,
            duration_seconds=statistics.duration_seconds,
        )
        return payload

    async def _process_batches(
        self,
        run: _DocumentationRun,
        candidates: Sequence[Path],
        channel: ProgressChannel,
        cancel: CancellationToken | None,
    ) -> None:
        total = len(candidates)
        batches = [candidates[i : i + BATCH_SIZE] for i in range(0, total, BATCH_SIZE)]
        for index, batch in enumerate(batches, start=1):
            if cancel is not None and cancel.cancelled:
                run.log.warning("run_cancelled", processed=len(run.processed), total=total)
                raise RunCancelledError
            results = await asyncio.gather(*(run.process_file(path) for path in batch))
            run.records.extend(rec for rec in results if rec is not None)
            done = min(index * BATCH_SIZE, total)
            channel.publish(f"Processed {done}/{total} files...", 30 + (index * 50) // len(batches))


async def aquick_analyze(root: Path | str, policy: InclusionPolicy | None = None) -> QuickAnalysis:
    """Content-free scan: file count, extension histogram and top-level directory histogram.

    Files sitting directly in the root are counted under ``"."``.
    """
    root = Path(os.path.abspath(root))
    policy = policy or InclusionPolicy.load(root)
    file_types: Counter[str] = Counter()
    directories: Counter[str] = Counter()
    total = 0
    for path in await walk_files(root, policy):
        if not policy.should_include(path):
            continue
        rel = policy.relative(path)
        if rel is None:
            continue
        total += 1
        file_types[file_extension(rel)] += 1
        top, sep, _ = rel.partition("/")
        directories[top if sep else "."] += 1
    return QuickAnalysis(
        total_files=total,
        file_types=dict(file_types.most_common()),
        directories=dict(directories.most_common()),
    )


def quick_analyze(root: Path | str, policy: InclusionPolicy | None = None) -> QuickAnalysis:
    return asyncio.run(aquick_analyze(root, policy))


def create_initial_config(root: Path | str, settings: Settings | None = None) -> Path:
    """Write the default configuration to ``<root>/cartographer.config.json``.

    Returns:
        Path: the written configuration file
    """
    policy = InclusionPolicy(Path(root), settings=settings)
    policy.regenerate_defaults()
    return policy.save_config()
