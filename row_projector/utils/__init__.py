"""
Utilities package for the segment row projector.

Exports shared helpers for logging and profiling. Keep this package
lightweight and free of domain-specific logic.
"""

from row_projector.utils.logging import configure_logging, get_logger
from row_projector.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
