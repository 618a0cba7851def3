"""
Infrastructure package for the segment row projector.

Centralizes filesystem concerns (locating and reading schema-spec documents).
Keep this layer focused on I/O, decoupled from projection logic.
"""

from row_projector.infrastructure.spec_resolver import SpecResolver

__all__ = [
    "SpecResolver",
]
