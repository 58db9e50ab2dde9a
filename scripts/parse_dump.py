#!/usr/bin/env python3
"""
CLI script for parsing and replaying mysqldump output.

Reads a dump written with single-row INSERT statements
(mysqldump --skip-extended-insert --master-data), reports its binlog
coordinate and rows, and optionally replays the rows into SQLite.

Usage:
    # Replay a dump into the configured SQLite database
    python scripts/parse_dump.py --input data/dump.sql

    # Gzip-compressed dumps are detected automatically
    python scripts/parse_dump.py --input data/dump.sql.gz --db-path data/replay.db

    # Only replay some schemas/tables
    python scripts/parse_dump.py -i dump.sql --schema app --table app.users

    # Parse and count without writing anything
    python scripts/parse_dump.py --input data/dump.sql --validate-only
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dump_events.config import clear_settings_cache, get_settings
from dump_events.dump import (
    DumpError,
    LoggingHandler,
    ReplayHandler,
    parse_dump_file,
)
from dump_events.storage import StorageError, get_backend

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for the script."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def validate_dump(input_path: Path, encoding: str) -> dict:
    """
    Parse a dump without applying it.

    Args:
        input_path: Dump file path
        encoding: Dump text encoding

    Returns:
        Dictionary with parse statistics
    """
    results = {"errors": [], "start_time": time.time()}
    handler = LoggingHandler()

    try:
        parse_result = parse_dump_file(input_path, handler, encoding=encoding)
        results.update(parse_result.to_dict())
        results["table_counts"] = dict(handler.table_counts)
    except (DumpError, OSError) as e:
        results["errors"].append(str(e))

    results["duration_seconds"] = time.time() - results["start_time"]
    return results


def replay_dump(
    input_path: Path,
    db_path: Optional[Path],
    encoding: str,
    batch_size: int,
    schemas: Optional[list[str]] = None,
    tables: Optional[list[str]] = None,
) -> dict:
    """
    Parse a dump and replay its rows into SQLite.

    Args:
        input_path: Dump file path
        db_path: SQLite database path (None: from settings)
        encoding: Dump text encoding
        batch_size: Rows per insert batch
        schemas: Only replay these schemas
        tables: Only replay these tables

    Returns:
        Dictionary with replay statistics
    """
    results = {"errors": [], "rows_written": 0, "start_time": time.time()}

    try:
        backend_kwargs = {"db_path": db_path} if db_path else {}
        backend = get_backend("sqlite", **backend_kwargs)
    except StorageError as e:
        results["errors"].append(f"Failed to create backend: {e}")
        return results

    try:
        backend.initialize()
        with ReplayHandler(
            backend, batch_size=batch_size, schemas=schemas, tables=tables
        ) as handler:
            parse_result = parse_dump_file(input_path, handler, encoding=encoding)
        results.update(parse_result.to_dict())
        results["rows_written"] = handler.rows_written
        results["table_counts"] = backend.get_table_counts()
    except (DumpError, StorageError, OSError) as e:
        results["errors"].append(str(e))
        logger.error(f"Replay aborted: {e}")
    finally:
        backend.close()

    results["duration_seconds"] = time.time() - results["start_time"]
    return results


def print_summary(results: dict, validate_only: bool) -> None:
    """Print a human-readable summary of a parse or replay."""
    print()
    print("Dump Parse Summary" if validate_only else "Dump Replay Summary")
    print("=" * 50)

    if results.get("binlog_name"):
        print(f"  Binlog position: {results['binlog_name']}:{results['binlog_pos']}")
    else:
        print("  Binlog position: (none)")

    print(f"  Lines read: {results.get('lines_read', 0):,}")
    print(f"  Rows parsed: {results.get('rows_parsed', 0):,}")
    print(f"  Rows skipped: {results.get('events_skipped', 0):,}")
    if not validate_only:
        print(f"  Rows written: {results.get('rows_written', 0):,}")
    if results.get("trailing_line_dropped"):
        print("  Note: final line had no newline and was ignored")

    for table, count in sorted(results.get("table_counts", {}).items()):
        print(f"    {table}: {count:,}")

    if "duration_seconds" in results:
        print(f"  Duration: {results['duration_seconds']:.2f}s")

    for error in results["errors"]:
        print(f"  ERROR: {error}")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Parse mysqldump output and replay it into SQLite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/parse_dump.py --input data/dump.sql
  python scripts/parse_dump.py --input data/dump.sql.gz --db-path data/replay.db
  python scripts/parse_dump.py -i dump.sql --schema app --table app.users
  python scripts/parse_dump.py --input data/dump.sql --validate-only
        """,
    )

    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        required=True,
        help="Dump file (.sql or .sql.gz)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--schema",
        action="append",
        dest="schemas",
        help="Only replay rows of this schema (repeatable)",
    )
    parser.add_argument(
        "--table",
        action="append",
        dest="tables",
        help="Only replay this table, as name or schema.table (repeatable)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Rows per batch for insertion (default: from settings, 1000)",
    )
    parser.add_argument(
        "--encoding",
        type=str,
        help="Dump text encoding (default: from settings, utf-8)",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Parse the dump without writing anything",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="YAML config file (plain or SOPS-encrypted .enc.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    clear_settings_cache()
    settings = get_settings(args.config)
    errors = settings.validate()
    if errors:
        parser.error("Invalid configuration: " + "; ".join(errors))

    batch_size = args.batch_size or settings.parser.batch_size
    if batch_size <= 0:
        parser.error("--batch-size must be greater than 0")

    encoding = args.encoding or settings.parser.encoding
    schemas = args.schemas or settings.parser.schemas
    tables = args.tables or settings.parser.tables

    if not args.input.is_file():
        parser.error(f"Input file not found: {args.input}")

    if args.validate_only:
        results = validate_dump(args.input, encoding)
    else:
        results = replay_dump(
            args.input,
            args.db_path or Path(settings.sqlite_db_path),
            encoding,
            batch_size,
            schemas=schemas,
            tables=tables,
        )

    print_summary(results, args.validate_only)

    return 1 if results["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
