"""
Schema-spec document resolution.

A schema location is either a path on the local host or a path on a
distributed filesystem. Local files win: an absolute path that exists locally
is read directly, relative paths are searched under the configured search
roots, and everything else is opened through pyarrow's filesystem layer
(hdfs://, s3://, file:// or the configured default filesystem).

Remote reads are retried with tenacity for transient I/O failures only; a
missing file is never retried.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pyarrow as pa
from pyarrow import fs as pafs
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from row_projector.config import get_settings
from row_projector.domain.models import LoadSpec
from row_projector.errors import SpecNotFoundError
from row_projector.utils.logging import get_logger

log = get_logger(__name__)

FilesystemFactory = Callable[[str], Tuple[pafs.FileSystem, str]]


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, OSError) and not isinstance(exc, FileNotFoundError)


class SpecResolver:
    """
    Locate and read schema-spec documents.

    Parameters
    ----------
    search_paths : sequence of str, optional
        Roots searched for relative locations. Defaults to settings, then the
        current working directory.
    default_filesystem_uri : str, optional
        Filesystem used for scheme-less locations not found locally.
    attempts : int, optional
        Total attempts for transient remote read failures.
    filesystem_factory : callable, optional
        `uri -> (FileSystem, path)`; defaults to `pyarrow.fs.FileSystem.from_uri`.
    wait : tenacity wait strategy, optional
        Backoff between remote attempts.
    """

    def __init__(
        self,
        search_paths: Optional[Sequence[str]] = None,
        default_filesystem_uri: Optional[str] = None,
        attempts: Optional[int] = None,
        filesystem_factory: Optional[FilesystemFactory] = None,
        wait: Optional[wait_base] = None,
    ) -> None:
        settings = get_settings()
        roots = list(settings.schema_search_paths if search_paths is None else search_paths)
        roots.append(str(Path.cwd()))
        self.search_paths: List[Path] = [Path(p) for p in roots]
        self.default_filesystem_uri = default_filesystem_uri or settings.default_filesystem_uri
        self.attempts = attempts or settings.spec_fetch_attempts
        self._filesystem_factory = filesystem_factory or pafs.FileSystem.from_uri
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    def find_local(self, location: str) -> Optional[Path]:
        """Return the local file for `location`, or None if it is not on this host."""
        if "://" in location:
            return None
        path = Path(location)
        if path.is_absolute():
            return path if path.is_file() else None
        for root in self.search_paths:
            candidate = root / path
            if candidate.is_file():
                return candidate
        return None

    def _remote_target(self, location: str) -> Tuple[pafs.FileSystem, str]:
        if "://" in location:
            return self._filesystem_factory(location)
        filesystem, base = self._filesystem_factory(self.default_filesystem_uri)
        path = location if location.startswith("/") else posixpath.join(base or "/", location)
        return filesystem, path

    def _read_remote(self, location: str) -> bytes:
        try:
            filesystem, path = self._remote_target(location)
        except (pa.ArrowInvalid, ValueError) as exc:
            raise SpecNotFoundError(location, f"unsupported filesystem: {exc}") from exc

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=self._wait,
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    with filesystem.open_input_stream(path) as stream:
                        return stream.read()
        except OSError as exc:
            raise SpecNotFoundError(location, str(exc)) from exc
        raise SpecNotFoundError(location)  # pragma: no cover - Retrying always returns or raises

    def resolve(self, location: str) -> bytes:
        """
        Read the raw document bytes for `location`.

        Raises
        ------
        SpecNotFoundError
            If neither the local host nor the distributed filesystem has it.
        """
        if not location:
            raise SpecNotFoundError(location, "empty schema location")
        local = self.find_local(location)
        if local is not None:
            log.info("Reading schema spec from local file", extra={"path": str(local)})
            return local.read_bytes()
        log.info("Reading schema spec from distributed filesystem", extra={"location": location})
        return self._read_remote(location)

    def load_spec(self, location: str) -> LoadSpec:
        return LoadSpec.parse(self.resolve(location))


__all__ = ["SpecResolver"]
