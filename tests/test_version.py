"""version.py tests"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from packaging.version import Version

from pg_stat_collector.exceptions import VersionDetectionError
from pg_stat_collector.version import (
    detect_server_version,
    parse_server_version,
    version_from_num,
)


class TestParseServerVersion:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("13.0.0", "13.0.0"),
            ("14.2", "14.2.0"),
            ("16beta1", "16.0.0"),
            ("9.6.24", "9.6.24"),
            ("13.4 (Debian 13.4-1.pgdg100+1)", "13.4.0"),
            ("PostgreSQL 15.3 on x86_64-pc-linux-gnu", "15.3.0"),
        ],
    )
    def test_tolerant_parsing(self, raw: str, expected: str) -> None:
        assert parse_server_version(raw) == Version(expected)

    @pytest.mark.parametrize("raw", ["", "unknown", "v14"])
    def test_garbage_raises(self, raw: str) -> None:
        with pytest.raises(VersionDetectionError):
            parse_server_version(raw)


class TestVersionFromNum:
    @pytest.mark.parametrize(
        ("num", "expected"),
        [(140002, "14.2.0"), (130000, "13.0.0"), (90605, "9.6.5"), (100012, "10.12.0")],
    )
    def test_conversion(self, num: int, expected: str) -> None:
        assert version_from_num(num) == Version(expected)

    def test_non_positive_raises(self) -> None:
        with pytest.raises(VersionDetectionError):
            version_from_num(0)


class TestDetectServerVersion:
    @pytest.mark.asyncio
    async def test_reads_server_version_num(self) -> None:
        result = MagicMock()
        result.scalar.return_value = "150004"
        conn = MagicMock()
        conn.execute = AsyncMock(return_value=result)

        version = await detect_server_version(conn)

        assert version == Version("15.4.0")
        assert "server_version_num" in str(conn.execute.call_args[0][0])

    @pytest.mark.asyncio
    async def test_query_failure_raises(self) -> None:
        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=Exception("permission denied"))

        with pytest.raises(VersionDetectionError, match="permission denied"):
            await detect_server_version(conn)

    @pytest.mark.asyncio
    async def test_garbage_value_raises(self) -> None:
        result = MagicMock()
        result.scalar.return_value = None
        conn = MagicMock()
        conn.execute = AsyncMock(return_value=result)

        with pytest.raises(VersionDetectionError):
            await detect_server_version(conn)
