"""Bounded-concurrency processing of work items."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from ..errors import (
    ElementTransformError,
    IncompleteTransformRegistryError,
    InvalidCodenameError,
    MissingContentTypeError,
    MissingElementError,
    MissingReferenceError,
    SnippetReferenceError,
)
from .migration_logger import LogType, MigrationLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_SKIPPED = object()

# Schema mismatches and transform failures abort the run even when skipping
FATAL_ERRORS = (
    InvalidCodenameError,
    MissingContentTypeError,
    MissingElementError,
    SnippetReferenceError,
    IncompleteTransformRegistryError,
    ElementTransformError,
    MissingReferenceError,
)


async def process_items(
    items: Sequence[T],
    handler: Callable[[T], Awaitable[R]],
    parallel_limit: int = 1,
    skip_failed_items: bool = False,
    describe: Optional[Callable[[T], str]] = None,
    migration_logger: Optional[MigrationLogger] = None,
) -> List[R]:
    """
    Run an async handler over items with at most parallel_limit in flight.

    Args:
        items: Work items, processed in input order
        handler: Coroutine function called once per item
        parallel_limit: Maximum number of concurrent handler calls
        skip_failed_items: Log and omit failing items instead of raising (FATAL_ERRORS always propagate)
        describe: Returns a human readable name of an item for log messages
        migration_logger: Receives a log entry for every skipped item

    Returns:
        Handler results in input order (skipped items omitted)
    """
    if not items:
        return []

    semaphore = asyncio.Semaphore(max(1, parallel_limit))
    describe = describe or (lambda item: str(item))

    async def run(item: T):
        async with semaphore:
            try:
                return await handler(item)
            except FATAL_ERRORS:
                raise
            except Exception as e:
                if not skip_failed_items:
                    raise
                message = f"Skipping '{describe(item)}': {e}"
                if migration_logger:
                    migration_logger.log(LogType.ERROR, message)
                else:
                    logger.error(message)
                return _SKIPPED

    tasks = [asyncio.ensure_future(run(item)) for item in items]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return [r for r in results if r is not _SKIPPED]

