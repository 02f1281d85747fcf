"""Map-then-reduce validation of large files split into line shards."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from layoutguard import logger
from layoutguard.exceptions import PackageError, ShardExecutionError
from layoutguard.orchestrator import FileValidationAccumulator, RunningAggregate, log_summary, record_violations
from layoutguard.parsing import parse_lines
from layoutguard.typing.enums import RecordKind
from layoutguard.typing.models import ValidationOptions

if TYPE_CHECKING:
    from collections.abc import Coroutine, Iterable, Sequence

    from layoutguard.registry import LayoutRegistry, RulePlan
    from layoutguard.typing.enums import FileType
    from layoutguard.typing.models import FileSchema, FileValidationResult, ParsedRecord

DEFAULT_SHARD_SIZE = 5000
DEFAULT_MAX_WORKERS = 4


@dataclass
class PendingFooter:
    """Footer whose rules wait for the aggregate of the preceding shards."""

    record: ParsedRecord
    preceding: RunningAggregate


@dataclass
class ShardResult:
    """Partial result of one shard."""

    index: int
    start_line: int
    accumulator: FileValidationAccumulator
    pending_footers: list[PendingFooter] = field(default_factory=list)


def split_shards(lines: Sequence[str], shard_size: int) -> list[tuple[int, Sequence[str]]]:
    """Split lines into consecutive shards.

    Args:
        lines (Sequence[str]): Physical lines in file order.
        shard_size (int): Lines per shard.

    Returns:
        list[tuple[int, Sequence[str]]]: Physical number of each shard's first line and its lines.
    """
    size = max(shard_size, 1)
    return [(start + 1, lines[start : start + size]) for start in range(0, len(lines), size)]


def validate_shard(
    file_schema: FileSchema,
    plan: RulePlan,
    lines: Sequence[str],
    *,
    index: int,
    start_line: int,
    options: ValidationOptions,
) -> ShardResult:
    """Parse and validate one shard, deferring its footers.

    Args:
        file_schema (FileSchema): Layout of the file.
        plan (RulePlan): Rules grouped by record kind.
        lines (Sequence[str]): Lines of the shard.
        index (int): Shard position.
        start_line (int): Physical number of the first line.
        options (ValidationOptions): Resolved validation options.

    Returns:
        ShardResult: Partial result.
    """
    accumulator = FileValidationAccumulator(file_schema=file_schema, max_violations=options.max_violations)
    result = ShardResult(index=index, start_line=start_line, accumulator=accumulator)
    running = accumulator.aggregate
    for record in parse_lines(lines, file_schema, options=options, start_line=start_line):
        if record.kind == RecordKind.FOOTER:
            result.pending_footers.append(PendingFooter(record=record, preceding=running.copy()))
        else:
            accumulator.add_record(record, record_violations(record, plan, as_of=options.evaluation_date))
        running.observe(record)
    return result


def reduce_shards(
    file_schema: FileSchema,
    plan: RulePlan,
    shards: Iterable[ShardResult],
    *,
    options: ValidationOptions,
) -> FileValidationAccumulator:
    """Merge shard results in file order and run the deferred footer rules.

    Args:
        file_schema (FileSchema): Layout of the file.
        plan (RulePlan): Rules grouped by record kind.
        shards (Iterable[ShardResult]): Partial results.
        options (ValidationOptions): Resolved validation options.

    Returns:
        FileValidationAccumulator: Accumulator of the whole file.
    """
    merged = FileValidationAccumulator(file_schema=file_schema, max_violations=options.max_violations)
    for shard in sorted(shards, key=lambda item: item.index):
        prefix = merged.aggregate.copy()
        merged.merge(shard.accumulator)
        for pending in shard.pending_footers:
            aggregate = prefix.copy()
            aggregate.merge(pending.preceding)
            violations = record_violations(
                pending.record,
                plan,
                aggregates=aggregate.values(),
                as_of=options.evaluation_date,
            )
            merged.add_record(pending.record, violations)
    return merged


async def avalidate_lines_sharded(
    file_type: FileType | str,
    lines: Iterable[str],
    registry: LayoutRegistry,
    *,
    options: ValidationOptions | None = None,
    shard_size: int = DEFAULT_SHARD_SIZE,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> FileValidationResult:
    """Validate lines shard by shard in worker threads.

    The result equals the one of `validate_lines` on the same input.

    Args:
        file_type (FileType | str): File type of the lines.
        lines (Iterable[str]): Physical lines in file order.
        registry (LayoutRegistry): Loaded layouts and rules.
        options (ValidationOptions | None): Validation options.
        shard_size (int): Lines per shard.
        max_workers (int): Maximum number of shards validated concurrently.

    Raises:
        ShardExecutionError: If a shard fails unexpectedly.

    Returns:
        FileValidationResult: Validation result.
    """
    file_schema = registry.get(file_type)
    resolved = (options or ValidationOptions()).resolved()
    plan = registry.rules_for(file_schema.file_type)
    shards = split_shards(list(lines), shard_size)
    semaphore = asyncio.Semaphore(max(max_workers, 1))

    async def _run_shard(index: int, start_line: int, chunk: Sequence[str]) -> ShardResult:
        async with semaphore:
            logger.debug("Validating shard", extra={"shard": index, "start_line": start_line, "lines": len(chunk)})
            try:
                return await asyncio.to_thread(
                    validate_shard,
                    file_schema,
                    plan,
                    chunk,
                    index=index,
                    start_line=start_line,
                    options=resolved,
                )
            except PackageError:
                raise
            except Exception as exc:
                raise ShardExecutionError(result=exc, message=f"Validation shard {index} failed") from exc

    with structlog.contextvars.bound_contextvars(file_type=str(file_schema.file_type)):
        tasks = [
            asyncio.create_task(_run_shard(index, start_line, chunk))
            for index, (start_line, chunk) in enumerate(shards)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        merged = reduce_shards(file_schema, plan, results, options=resolved)
        return log_summary(merged.snapshot())


def _run_coroutine[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion, off the current thread when a loop is already running.

    Args:
        coro: Coroutine to run.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="layoutguard-shards") as executor:
        return executor.submit(asyncio.run, coro).result()


def validate_lines_sharded(
    file_type: FileType | str,
    lines: Iterable[str],
    registry: LayoutRegistry,
    *,
    options: ValidationOptions | None = None,
    shard_size: int = DEFAULT_SHARD_SIZE,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> FileValidationResult:
    """Blocking entry point of `avalidate_lines_sharded`, usable from sync and async contexts.

    Args:
        file_type (FileType | str): File type of the lines.
        lines (Iterable[str]): Physical lines in file order.
        registry (LayoutRegistry): Loaded layouts and rules.
        options (ValidationOptions | None): Validation options.
        shard_size (int): Lines per shard.
        max_workers (int): Maximum number of shards validated concurrently.

    Returns:
        FileValidationResult: Validation result.
    """
    return _run_coroutine(
        avalidate_lines_sharded(
            file_type,
            lines,
            registry,
            options=options,
            shard_size=shard_size,
            max_workers=max_workers,
        ),
    )
