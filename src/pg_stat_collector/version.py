"""Server version detection

PostgreSQL reports versions such as ``14.2``, ``16beta1`` or
``13.4 (Debian 13.4-1.pgdg100+1)``; everything is normalized to a three-part
``packaging`` Version so it can be compared against catalog thresholds.
"""

from __future__ import annotations

import re

import structlog
from packaging.version import Version
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from pg_stat_collector.exceptions import VersionDetectionError

logger = structlog.get_logger(__name__)

_VERSION_RE = re.compile(r"^\s*(?:PostgreSQL\s+)?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_server_version(raw: str) -> Version:
    """Parse a server version string, ignoring suffixes after the numbers.

    Raises:
        VersionDetectionError: no leading version number was found
    """
    match = _VERSION_RE.match(raw or "")
    if match is None:
        raise VersionDetectionError(f"unparseable server version: {raw!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return Version(f"{major}.{minor}.{patch}")


def version_from_num(num: int) -> Version:
    """Convert ``server_version_num`` to a Version.

    From 10 on the number is ``major * 10000 + minor``; older releases use
    ``major * 10000 + minor * 100 + patch``.
    """
    if num <= 0:
        raise VersionDetectionError(f"invalid server_version_num: {num}")
    major = num // 10000
    if major >= 10:
        return Version(f"{major}.{num % 10000}.0")
    return Version(f"{major}.{(num // 100) % 100}.{num % 100}")


async def detect_server_version(conn: AsyncConnection) -> Version:
    """Read the version of the server behind ``conn``.

    Raises:
        VersionDetectionError: the query failed or returned garbage
    """
    try:
        result = await conn.execute(text("SHOW server_version_num"))
        raw = result.scalar()
    except Exception as e:
        logger.warning("server version query failed", error=str(e))
        raise VersionDetectionError(f"server version query failed: {e}") from e

    try:
        version = version_from_num(int(raw))
    except (TypeError, ValueError) as e:
        raise VersionDetectionError(f"unexpected server_version_num: {raw!r}") from e

    logger.debug("detected server version", version=str(version))
    return version
