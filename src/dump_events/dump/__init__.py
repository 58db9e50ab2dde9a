"""
Streaming mysqldump parser.

Turns the text of a dump into a binlog coordinate event and one row event
per single-row INSERT statement, delivered to a handler.

Usage:
    from dump_events.dump import CollectingHandler, parse_dump_file

    handler = CollectingHandler()
    result = parse_dump_file('/path/to/dump.sql.gz', handler)

    print(handler.binlog_position)
    for row in handler.rows:
        print(row.schema, row.table, row.values)
"""

from .base import (
    MAX_BINLOG_POSITION,
    BinlogPosition,
    HandlerResult,
    ParseHandler,
    ParseResult,
    RowEvent,
)
from .exceptions import (
    DumpError,
    HandlerError,
    MalformedPositionError,
    MalformedValuesError,
    ParseError,
    StreamReadError,
)
from .file_utils import open_file_auto_decompress
from .parser import DumpParser, parse, parse_dump_file
from .values import parse_values
from .handlers import CollectingHandler, LoggingHandler, ReplayHandler, is_selected

__all__ = [
    # Data models and handler interface
    "ParseHandler",
    "HandlerResult",
    "BinlogPosition",
    "RowEvent",
    "ParseResult",
    "MAX_BINLOG_POSITION",
    # Parsing
    "DumpParser",
    "parse",
    "parse_dump_file",
    "parse_values",
    # Handlers
    "LoggingHandler",
    "CollectingHandler",
    "ReplayHandler",
    "is_selected",
    # Exceptions
    "DumpError",
    "ParseError",
    "MalformedPositionError",
    "MalformedValuesError",
    "StreamReadError",
    "HandlerError",
    # File utilities
    "open_file_auto_decompress",
]
