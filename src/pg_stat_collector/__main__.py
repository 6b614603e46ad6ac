#!/usr/bin/env python3
"""pg-stat-collector entry point

Usage:
    python -m pg_stat_collector scrape
    python -m pg_stat_collector scrape --server-version 14.2 --format json
    python -m pg_stat_collector columns --server-version 13.0
"""

from __future__ import annotations

import sys

from pg_stat_collector.cli import cmd_columns, cmd_scrape, create_parser


def main() -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    if args.command == "scrape":
        return cmd_scrape(args)
    elif args.command == "columns":
        return cmd_columns(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
