"""
Complex metric codec registry.

Complex metric values (sketches, histograms, ...) are opaque to the projector;
it only needs to turn them into bytes. Codecs are registered by exact type
identifier at startup, either explicitly or through installed entry points,
and looked up per metric column during projection.
"""

from __future__ import annotations

import threading
from importlib.metadata import entry_points
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from row_projector.config import get_settings
from row_projector.errors import MissingCodecError
from row_projector.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class ComplexMetricCodec(Protocol):
    """
    Serializer for one complex metric type.
    """

    def to_bytes(self, value: Any) -> bytes:
        """Encode a raw complex metric value."""
        ...


class CodecRegistry:
    """
    Mapping from complex type identifier to codec.

    Registration is guarded by a lock; lookups are plain dict reads and are
    safe once startup registration is finished.
    """

    def __init__(self) -> None:
        self._codecs: Dict[str, ComplexMetricCodec] = {}
        self._lock = threading.Lock()

    def register(self, type_name: str, codec: ComplexMetricCodec, replace: bool = False) -> None:
        if not isinstance(codec, ComplexMetricCodec):
            raise TypeError(f"Codec for '{type_name}' must define to_bytes(value)")
        with self._lock:
            if type_name in self._codecs and not replace:
                raise ValueError(f"Codec already registered for '{type_name}'")
            self._codecs[type_name] = codec
        log.debug("Registered complex metric codec", extra={"type_name": type_name})

    def get(self, type_name: str) -> Optional[ComplexMetricCodec]:
        return self._codecs.get(type_name)

    def lookup(self, type_name: str) -> ComplexMetricCodec:
        """
        Return the codec for `type_name` or raise MissingCodecError.
        """
        codec = self._codecs.get(type_name)
        if codec is None:
            raise MissingCodecError(type_name)
        return codec

    def type_names(self) -> List[str]:
        return sorted(self._codecs)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._codecs

    def __len__(self) -> int:
        return len(self._codecs)


def load_entry_point_codecs(registry: CodecRegistry, group: Optional[str] = None) -> int:
    """
    Register codecs advertised by installed distributions.

    Each entry point name is the complex type identifier; its target is either
    a codec object or a zero-argument factory returning one.

    Returns
    -------
    int
        Number of codecs registered.
    """
    group = group or get_settings().codec_entry_point_group
    loaded = 0
    for ep in entry_points(group=group):
        target = ep.load()
        # Classes also satisfy the protocol check, so instantiate them.
        if isinstance(target, type) or not isinstance(target, ComplexMetricCodec):
            codec = target()
        else:
            codec = target
        registry.register(ep.name, codec, replace=True)
        loaded += 1
    log.info("Loaded complex metric codecs", extra={"group": group, "codecs": loaded})
    return loaded


_default_registry: Optional[CodecRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> CodecRegistry:
    """
    Process-wide registry, populated from entry points on first use.
    """
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            registry = CodecRegistry()
            load_entry_point_codecs(registry)
            _default_registry = registry
        return _default_registry


__all__ = [
    "ComplexMetricCodec",
    "CodecRegistry",
    "default_registry",
    "load_entry_point_codecs",
]
