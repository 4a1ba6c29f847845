"""
Impostor - Async Utilities
==========================

Utilities for handling async operations with proper error logging.
Eliminates silent failures in asyncio.gather and other async patterns.

Usage:
    from impostor.utils.async_utils import gather_with_logging

    # Instead of:
    await asyncio.gather(op1(), op2(), return_exceptions=True)

    # Use:
    await gather_with_logging(
        ("Move 1234", move_member()),
        ("Move 5678", move_member()),
    )
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Tuple

from impostor.core.logger import log


async def gather_with_logging(
    *operations: Tuple[str, Awaitable[Any]],
    context: Optional[str] = None,
) -> List[Any]:
    """
    Run multiple async operations concurrently with error logging.

    Unlike asyncio.gather with return_exceptions=True, this function
    logs any exceptions that occur so failures aren't silent.

    Args:
        *operations: Tuples of (operation_name, coroutine or task).
        context: Optional context string for error logs.

    Returns:
        List of results (including exceptions as values, not raised),
        in the same order as the operations.
    """
    if not operations:
        return []

    names = [name for name, _ in operations]
    coros = [coro for _, coro in operations]

    results = await asyncio.gather(*coros, return_exceptions=True)

    # Log any failures
    for name, result in zip(names, results):
        if isinstance(result, Exception):
            error_details = [
                ("Operation", name),
                ("Error Type", type(result).__name__),
                ("Error", str(result)[:100]),
            ]
            if context:
                error_details.insert(0, ("Context", context))

            log.tree("Async Operation Failed", error_details, emoji="⚠️", error=True)

    return results


# =============================================================================
# Safe Background Tasks
# =============================================================================

def create_safe_task(
    coro: Awaitable[Any],
    name: str = "Background Task",
) -> asyncio.Task:
    """
    Create a background task with automatic error logging.

    Unlike raw asyncio.create_task(), this catches and logs any exceptions
    instead of letting them silently disappear. Cancellation propagates so
    callers awaiting the task during shutdown still see CancelledError.
    """
    async def wrapped():
        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error_tree("Background Task Failed", e, [
                ("Task", name),
            ])

    return asyncio.create_task(wrapped(), name=name)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "gather_with_logging",
    "create_safe_task",
]
