"""Bounded worker pool for batch operations over many apps.

One producer feeds a shared queue, a fixed number of workers drain it, and
the call returns only once every worker has finished. A failing item is
logged and counted; it never stops the other workers.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WORKERS = 200

_CLOSED = object()


@dataclass
class BatchResult:
    """Outcome of one batch run."""
    operation: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    changed: list[Any] = field(default_factory=list)


async def run_pool(
    items: Iterable[T],
    handler: Callable[[T], Awaitable[bool | None]],
    workers: int = DEFAULT_WORKERS,
    operation: str = "batch",
) -> BatchResult:
    """Run ``handler`` once for every item using at most ``workers`` tasks.

    A handler returning ``True`` marks its item as changed. Exceptions raised
    by the handler count the item as failed.
    """
    if workers < 1:
        raise ValueError(f"workers must be positive, got {workers}")

    items = list(items)
    result = BatchResult(operation=operation, total=len(items))
    if not items:
        return result

    width = min(workers, len(items))
    queue: asyncio.Queue = asyncio.Queue(maxsize=width)

    async def produce() -> None:
        for item in items:
            await queue.put(item)
        # Close the queue: one sentinel per worker
        for _ in range(width):
            await queue.put(_CLOSED)

    async def consume() -> None:
        while True:
            item = await queue.get()
            if item is _CLOSED:
                return
            try:
                changed = await handler(item)
            except Exception:
                result.failed += 1
                logger.warning(
                    "%s: item %r failed", operation, item,
                    exc_info=True, extra={"operation": operation},
                )
                continue
            result.succeeded += 1
            if changed:
                result.changed.append(item)

    await asyncio.gather(produce(), *(consume() for _ in range(width)))
    logger.info(
        "%s finished: %d ok, %d failed of %d",
        operation, result.succeeded, result.failed, result.total,
        extra={
            "operation": operation,
            "total": result.total,
            "succeeded": result.succeeded,
            "failed": result.failed,
        },
    )
    return result
