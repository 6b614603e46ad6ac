"""CLI command handling

Provides the ``scrape`` and ``columns`` commands.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import structlog
from packaging.version import Version
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from pg_stat_collector.catalog import build_stat_database_catalog
from pg_stat_collector.collectors import StatDatabaseCollector, build_query, select_columns
from pg_stat_collector.config import Settings, get_settings
from pg_stat_collector.exceptions import (
    DatabaseConnectionError,
    MetricsError,
    VersionDetectionError,
)
from pg_stat_collector.exposition import render_exposition
from pg_stat_collector.logging import configure_logging
from pg_stat_collector.models import Observation
from pg_stat_collector.sinks import ListSink
from pg_stat_collector.version import detect_server_version, parse_server_version

logger = structlog.get_logger(__name__)


async def run_scrape(settings: Settings, server_version: str | None = None) -> list[Observation]:
    """Connect, resolve the server version and run one bounded scrape cycle.

    An explicit version wins over detection. When detection fails the cycle
    still runs with unconditional columns only.
    """
    log = logger.bind(dsn=settings.redacted_dsn)
    collector = StatDatabaseCollector(build_stat_database_catalog(settings.namespace))
    sink = ListSink()

    engine = create_async_engine(
        settings.dsn,
        poolclass=NullPool,
        connect_args={"server_settings": {"application_name": "pg-stat-collector"}},
    )
    try:
        async with engine.connect() as conn:
            version: Version | None
            override = server_version or settings.server_version
            if override:
                version = parse_server_version(override)
            else:
                try:
                    version = await detect_server_version(conn)
                except VersionDetectionError as e:
                    log.warning("version detection failed, requesting base columns only", error=str(e))
                    version = None

            await asyncio.wait_for(
                collector.collect(conn, version, sink),
                timeout=settings.scrape_timeout_seconds,
            )
    except asyncio.TimeoutError:
        raise
    except (OSError, SQLAlchemyError) as e:
        log.error("database connection failed", error=str(e))
        raise DatabaseConnectionError(f"connection failed: {e}") from e
    finally:
        await engine.dispose()

    return sink.observations


def cmd_scrape(args: argparse.Namespace) -> int:
    """Run a single scrape and print the result."""
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)

    try:
        observations = asyncio.run(run_scrape(settings, args.server_version))
    except MetricsError as e:
        logger.error("scrape failed", error=str(e))
        return 1
    except asyncio.TimeoutError:
        logger.error("scrape timed out", timeout=settings.scrape_timeout_seconds)
        return 1
    except Exception as e:
        logger.error("unexpected scrape error", error=str(e), exc_info=True)
        return 1

    if args.format == "json":
        for observation in observations:
            print(json.dumps(observation.to_dict(), ensure_ascii=False))
    else:
        sys.stdout.write(render_exposition(observations).decode("utf-8"))
    return 0


def cmd_columns(args: argparse.Namespace) -> int:
    """Print the column set and query for a server version."""
    settings = get_settings()
    catalog = build_stat_database_catalog(settings.namespace)

    try:
        version = parse_server_version(args.server_version) if args.server_version else None
    except VersionDetectionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    columns = select_columns(catalog, version)
    print(f"version: {version if version else 'unknown'}")
    print(f"columns: {', '.join(columns)}")
    print(f"query: {build_query(columns)}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pg_stat_collector",
        description="Version-aware pg_stat_database metrics collector",
    )
    subparsers = parser.add_subparsers(dest="command")

    scrape = subparsers.add_parser("scrape", help="Run one scrape cycle and print the metrics")
    scrape.add_argument("--server-version", help="Assume this server version instead of detecting it")
    scrape.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Prometheus text exposition or JSON lines (default: text)",
    )
    scrape.add_argument("--log-level", help="Override the configured log level")

    columns = subparsers.add_parser("columns", help="Show the columns requested for a version")
    columns.add_argument("--server-version", help="Server version, omitted means unknown")

    return parser
