"""Impostor - Utils Package."""

from impostor.utils.async_utils import gather_with_logging, create_safe_task

__all__ = [
    "gather_with_logging",
    "create_safe_task",
]
