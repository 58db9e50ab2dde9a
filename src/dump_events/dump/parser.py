"""
Streaming parser for mysqldump output.

Reads a dump line by line and dispatches two kinds of events to a handler:

    CHANGE MASTER TO MASTER_LOG_FILE='mysql-bin.000123', MASTER_LOG_POS=45678;
        -> handler.binlog("mysql-bin.000123", 45678)

    USE `app`;
    INSERT INTO `users` VALUES (1,'Alice','a@b.com');
        -> handler.data("app", "users", ["1", "Alice", "a@b.com"])

Only single-row INSERT statements are understood (one row per line, as
written by ``mysqldump --skip-extended-insert``). Every other line is
ignored.
"""

import logging
import re
from pathlib import Path
from typing import IO, Union

from .base import (
    MAX_BINLOG_POSITION,
    BinlogPosition,
    HandlerResult,
    ParseHandler,
    ParseResult,
)
from .exceptions import MalformedPositionError, MalformedValuesError, StreamReadError
from .file_utils import DECODE_ERRORS, open_file_auto_decompress
from .values import parse_values

logger = logging.getLogger(__name__)


class DumpParser:
    """
    Line classifier for mysqldump output.

    The compiled patterns are shared by every instance; all per-parse state
    lives in local variables of ``parse``, so one parser can serve any number
    of sequential or concurrent parses.

    Usage:
        parser = DumpParser()
        with open('dump.sql', newline='\n', errors='surrogateescape') as f:
            result = parser.parse(f, handler)
        print(result.rows_parsed)
    """

    BINLOG_RE = re.compile(
        r"^CHANGE MASTER TO MASTER_LOG_FILE='(.+)', MASTER_LOG_POS=([0-9]+);"
    )
    USE_RE = re.compile(r"^USE `(.+)`;")
    INSERT_RE = re.compile(r"^INSERT INTO `(.+)` VALUES \((.+)\);")

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize dump parser.

        Args:
            encoding: Encoding used to decode binary streams
        """
        self.encoding = encoding

    def parse(self, stream: IO, handler: ParseHandler) -> ParseResult:
        """
        Parse a dump stream, dispatching events to the handler.

        Each line is tested against all three statement patterns; a final
        line without a trailing newline is not classified.

        Args:
            stream: Readable text or binary stream, newline delimited
            handler: Receiver of binlog and row events

        Returns:
            ParseResult with statistics for this parse

        Raises:
            MalformedPositionError: If the binlog offset exceeds 64 bits
            MalformedValuesError: If a VALUES list has an unterminated string
            StreamReadError: If reading or decoding the stream fails
            Exception: Whatever the handler raises, unchanged
        """
        if not isinstance(handler, ParseHandler):
            raise TypeError(
                f"Handler must provide binlog() and data(), "
                f"got {type(handler).__name__}"
            )

        result = ParseResult()
        schema = ""
        binlog_parsed = False

        while True:
            line = self._read_line(stream, result.lines_read + 1)
            if not line:
                break

            if not line.endswith("\n"):
                # Unterminated last line is never classified
                result.trailing_line_dropped = True
                logger.debug(
                    f"Ignoring unterminated final line {result.lines_read + 1} "
                    f"({len(line)} chars)"
                )
                break

            result.lines_read += 1
            line_number = result.lines_read
            line = line[:-1]

            if not binlog_parsed:
                match = self.BINLOG_RE.match(line)
                if match:
                    name = match.group(1)
                    pos = int(match.group(2))
                    if pos > MAX_BINLOG_POSITION:
                        raise MalformedPositionError(
                            match.group(2), line_number=line_number, line_content=line
                        )

                    logger.debug(f"Binlog position {name}:{pos} at line {line_number}")
                    if handler.binlog(name, pos) is HandlerResult.SKIP:
                        result.events_skipped += 1
                    result.binlog = BinlogPosition(name=name, pos=pos)
                    binlog_parsed = True

            match = self.USE_RE.match(line)
            if match:
                schema = match.group(1)

            match = self.INSERT_RE.match(line)
            if match:
                table = match.group(1)
                try:
                    values = parse_values(match.group(2))
                except MalformedValuesError as e:
                    raise MalformedValuesError(
                        e.message,
                        offset=e.offset,
                        line_number=line_number,
                        line_content=line,
                    ) from e

                result.rows_parsed += 1
                if handler.data(schema, table, values) is HandlerResult.SKIP:
                    result.events_skipped += 1
                    logger.debug(f"Handler skipped row at line {line_number}")

        logger.info(
            f"Dump parsing complete: {result.lines_read} lines, "
            f"{result.rows_parsed} rows, {result.events_skipped} skipped"
        )
        return result

    def _read_line(self, stream: IO, line_number: int) -> str:
        """
        Read and decode the next raw line, including its terminator.

        Returns an empty string at end of stream.
        """
        try:
            line = stream.readline()
            if isinstance(line, bytes):
                line = line.decode(self.encoding, errors=DECODE_ERRORS)
        except (OSError, UnicodeDecodeError) as e:
            raise StreamReadError(
                f"Failed to read dump stream: {e}", line_number=line_number
            ) from e
        return line


_default_parser = DumpParser()


def parse(stream: IO, handler: ParseHandler) -> ParseResult:
    """
    Parse a dump stream with the default UTF-8 parser.

    Args:
        stream: Readable text or binary stream
        handler: Receiver of binlog and row events

    Returns:
        ParseResult with statistics for this parse
    """
    return _default_parser.parse(stream, handler)


def parse_dump_file(
    file_path: Union[str, Path],
    handler: ParseHandler,
    encoding: str = "utf-8",
) -> ParseResult:
    """
    Parse a dump file and dispatch its events to the handler.

    Automatically handles gzip-compressed files (.gz extension or gzip
    magic bytes).

    Args:
        file_path: Path to the dump file (.sql or .sql.gz)
        handler: Receiver of binlog and row events
        encoding: File encoding (default: utf-8)

    Returns:
        ParseResult with statistics for this parse

    Raises:
        FileNotFoundError: If file doesn't exist
        ParseError: If a line cannot be parsed
        StreamReadError: If reading the file fails
    """
    parser = DumpParser(encoding=encoding)

    logger.info(f"Parsing dump file: {file_path}")
    with open_file_auto_decompress(file_path, encoding) as f:
        return parser.parse(f, handler)
