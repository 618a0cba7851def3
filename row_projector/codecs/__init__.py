"""
Codecs package: registry of complex metric serializers.
"""

from row_projector.codecs.registry import (
    CodecRegistry,
    ComplexMetricCodec,
    default_registry,
    load_entry_point_codecs,
)

__all__ = [
    "CodecRegistry",
    "ComplexMetricCodec",
    "default_registry",
    "load_entry_point_codecs",
]
