#!/usr/bin/env python3
"""
Database query analyzer.

    python -m src.monitoring analyze-queries [--threshold=1000]
    python -m src.monitoring analyze-queries --show-indexes
    python -m src.monitoring analyze-queries --unused-indexes
    python -m src.monitoring analyze-queries --suggest-indexes TABLE
    python -m src.monitoring analyze-queries --table-stats [TABLE]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any, List, Optional, Sequence, TextIO

from src.config import get_settings
from src.monitoring.infrastructure.query_optimizer import QueryOptimizer
from src.shared.infrastructure.cache.redis_client import RedisClient
from src.shared.infrastructure.database.session import DatabaseSessionFactory
from src.shared.logging import setup_logging

ALL_TABLES = "*"


def _truncate(value: Any, limit: int = 60) -> str:
    text = "" if value is None else str(value)
    text = " ".join(text.split())
    return text if len(text) <= limit else text[: limit - 3] + "..."


def print_table(headers: Sequence[str], rows: List[Sequence[Any]], out: TextIO = sys.stdout) -> None:
    cells = [[_truncate(c) for c in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        widths = [max(w, len(c)) for w, c in zip(widths, row)]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(values: Sequence[str]) -> str:
        return "| " + " | ".join(v.ljust(w) for v, w in zip(values, widths)) + " |"

    print(border, file=out)
    print(line(list(headers)), file=out)
    print(border, file=out)
    for row in cells:
        print(line(row), file=out)
    print(border, file=out)


def _ms(value: Any) -> Any:
    return round(float(value), 2) if value is not None else None


async def show_slow_queries(optimizer: QueryOptimizer, threshold: float, out: TextIO) -> None:
    print(f"Slow Queries (threshold: {threshold:g}ms)\n", file=out)
    queries = await optimizer.slow_queries(threshold)
    if not queries:
        print("No slow queries found!", file=out)
        return
    print(f"Found {len(queries)} slow queries\n", file=out)
    print_table(
        ["Query", "Calls", "Avg Time (ms)", "Max Time (ms)", "Total Time (s)"],
        [
            [q["query"], q["calls"], _ms(q["mean_time"]), _ms(q["max_time"]), round(float(q["total_time"]) / 1000, 2)]
            for q in queries
        ],
        out,
    )


async def show_index_stats(optimizer: QueryOptimizer, out: TextIO) -> None:
    print("Index Usage Statistics\n", file=out)
    stats = await optimizer.index_stats()
    if not stats:
        print("No index statistics available", file=out)
        return
    print_table(
        ["Table", "Index", "Scans", "Tuples Read", "Tuples Fetched"],
        [[s["tablename"], s["indexname"], s["idx_scan"], s["idx_tup_read"], s["idx_tup_fetch"]] for s in stats],
        out,
    )


async def show_unused_indexes(optimizer: QueryOptimizer, out: TextIO) -> None:
    print("Unused Indexes\n", file=out)
    indexes = await optimizer.unused_indexes()
    if not indexes:
        print("All indexes are being used!", file=out)
        return
    print(f"Found {len(indexes)} unused indexes\n", file=out)
    print_table(
        ["Schema", "Table", "Index", "Size"],
        [[i["schemaname"], i["tablename"], i["indexname"], i["index_size"]] for i in indexes],
        out,
    )
    print("\nConsider dropping unused indexes to save space and improve write performance", file=out)


async def show_index_suggestions(optimizer: QueryOptimizer, table: str, out: TextIO) -> None:
    print(f"Index Suggestions for table: {table}\n", file=out)
    suggestions = await optimizer.suggest_indexes(table)
    if not suggestions:
        print("No index suggestions for this table", file=out)
        return
    print_table(
        ["Column", "Type", "Reason"],
        [[s["column"], s["type"], s["reason"]] for s in suggestions],
        out,
    )
    print("\nExample:", file=out)
    first = suggestions[0]
    print(f"  CREATE INDEX idx_{table}_{first['column']} ON {table} ({first['column']});", file=out)


async def show_table_stats(optimizer: QueryOptimizer, table: Optional[str], out: TextIO) -> None:
    print(f"Table Statistics: {table}\n" if table else "Table Statistics (top 20 by size)\n", file=out)
    stats = await optimizer.table_stats(table)
    if not stats:
        print("No table statistics available", file=out)
        return
    print_table(
        ["Table", "Total Size", "Table Size", "Indexes Size", "Live Rows", "Dead Rows", "Last Analyze"],
        [
            [
                s["tablename"],
                s["total_size"],
                s["table_size"],
                s["indexes_size"],
                s["live_rows"],
                s["dead_rows"],
                s.get("last_autoanalyze") or s.get("last_analyze"),
            ]
            for s in stats
        ],
        out,
    )


async def analyze_queries(args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    settings = get_settings()
    db = DatabaseSessionFactory.from_settings(settings)
    cache = RedisClient(settings.REDIS_URL)
    await cache.connect()
    print("Database Query Analyzer\n", file=out)
    try:
        async with db.session_factory() as session:
            optimizer = QueryOptimizer(session, cache)
            if args.show_indexes:
                await show_index_stats(optimizer, out)
            elif args.unused_indexes:
                await show_unused_indexes(optimizer, out)
            elif args.suggest_indexes:
                await show_index_suggestions(optimizer, args.suggest_indexes, out)
            elif args.table_stats is not None:
                table = None if args.table_stats == ALL_TABLES else args.table_stats
                await show_table_stats(optimizer, table, out)
            else:
                await show_slow_queries(optimizer, args.threshold, out)
    finally:
        await cache.close()
        await db.dispose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m src.monitoring", description="Database monitoring tools")
    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze-queries", help="Analyze database queries and suggest optimizations")
    analyze.add_argument("--threshold", type=float, default=1000, help="Slow query threshold in milliseconds")
    analyze.add_argument("--show-indexes", action="store_true", help="Show index usage statistics")
    analyze.add_argument("--unused-indexes", action="store_true", help="Show unused indexes")
    analyze.add_argument("--suggest-indexes", metavar="TABLE", help="Suggest indexes for a table")
    analyze.add_argument(
        "--table-stats",
        metavar="TABLE",
        nargs="?",
        const=ALL_TABLES,
        help="Show statistics for a table (largest tables when omitted)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    if args.command == "analyze-queries":
        return asyncio.run(analyze_queries(args))
    return 2


if __name__ == "__main__":
    sys.exit(main())
