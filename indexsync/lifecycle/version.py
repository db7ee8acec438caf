"""Server version contract with a time-bound positive cache."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from pathlib import Path

from elasticsearch import Elasticsearch

from indexsync.errors import ClientResponseError, IncompatibleServerError
from indexsync.index.handle import client_errors

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


def parse_version(version: str) -> tuple[int, ...]:
    """Numeric components of a dotted version, ignoring suffixes like ``-SNAPSHOT``."""
    parts: list[int] = []
    for piece in version.strip().split("."):
        match = re.match(r"\d+", piece)
        if match is None:
            break
        parts.append(int(match.group()))
    if not parts:
        raise ValueError(f"Not a version string: {version!r}")
    return tuple(parts)


def version_at_least(version: str, minimum: str) -> bool:
    have, want = parse_version(version), parse_version(minimum)
    width = max(len(have), len(want))
    return have + (0,) * (width - len(have)) >= want + (0,) * (width - len(want))


class VersionCheckCache:
    """Remembers a successful version check until its TTL runs out.

    With a *path*, the expiry time is also written to disk so that other
    processes sharing the path skip the check too.
    """

    def __init__(
        self,
        ttl: int = DEFAULT_TTL,
        path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self.path = Path(path).expanduser() if path else None
        self._clock = clock
        self._expires_at: float | None = None

    def is_valid(self) -> bool:
        now = self._clock()
        if self._expires_at is not None and now < self._expires_at:
            return True
        stored = self._read()
        if stored is not None and now < stored:
            self._expires_at = stored
            return True
        return False

    def mark_ok(self) -> None:
        self._expires_at = self._clock() + self.ttl
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(repr(self._expires_at))
            except OSError as e:
                logger.warning("Could not persist version check to %s: %s", self.path, e)

    def clear(self) -> None:
        self._expires_at = None
        if self.path is not None:
            self.path.unlink(missing_ok=True)

    def _read(self) -> float | None:
        if self.path is None or not self.path.is_file():
            return None
        try:
            return float(self.path.read_text().strip())
        except (OSError, ValueError):
            return None


def fetch_server_version(client: Elasticsearch) -> str:
    """Read ``version.number`` from the cluster root endpoint."""
    with client_errors("version check", None):
        info = client.info()
    try:
        version = info["version"]["number"]
    except (KeyError, TypeError):
        version = None
    if not isinstance(version, str):
        raise ClientResponseError("version check", None, message="Unexpected response")
    try:
        parse_version(version)
    except ValueError as e:
        raise ClientResponseError("version check", None, e, message="Unexpected response") from e
    return version


def check_version(client: Elasticsearch, minimum: str, cache: VersionCheckCache) -> None:
    """Fail with IncompatibleServerError unless the server is at least *minimum*."""
    if cache.is_valid():
        return

    version = fetch_server_version(client)
    if not version_at_least(version, minimum):
        raise IncompatibleServerError(version, minimum)

    logger.debug("Elasticsearch %s satisfies minimum %s", version, minimum)
    cache.mark_ok()
