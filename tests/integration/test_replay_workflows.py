"""
Integration tests for replaying dump files into SQLite.

Tests the full path: dump file -> parser -> ReplayHandler -> SQLiteBackend.
"""

import pytest

from dump_events.dump import (
    BinlogPosition,
    HandlerError,
    MalformedValuesError,
    ReplayHandler,
    parse_dump_file,
)


class TestReplayDumpFile:
    """Tests for replaying a generated dump."""

    def test_all_rows_replayed(self, dump_file, dump_data, sqlite_backend):
        """Every row lands in the database in dump order."""
        _, expected = dump_data

        with ReplayHandler(sqlite_backend, batch_size=25) as handler:
            result = parse_dump_file(dump_file, handler)

        assert result.rows_parsed == len(expected)
        assert handler.rows_written == len(expected)
        assert sqlite_backend.get_rows() == expected

    def test_binlog_position_recorded(self, dump_file, sqlite_backend):
        """The dump's coordinate is stored for resuming replication."""
        with ReplayHandler(sqlite_backend) as handler:
            parse_dump_file(dump_file, handler)

        assert sqlite_backend.get_binlog_position() == BinlogPosition(
            "mysql-bin.000042", 1337
        )

    def test_gzip_dump(self, gzip_dump_file, dump_data, sqlite_backend):
        """Compressed dumps replay identically."""
        _, expected = dump_data

        with ReplayHandler(sqlite_backend) as handler:
            parse_dump_file(gzip_dump_file, handler)

        assert sqlite_backend.get_table_row_count("dump_rows") == len(expected)

    def test_schema_filter(self, dump_file, dump_data, sqlite_backend):
        """Only selected schemas are written; the rest are skipped."""
        _, expected = dump_data
        shop_rows = [row for row in expected if row.schema == "shop"]

        with ReplayHandler(sqlite_backend, schemas=["shop"]) as handler:
            result = parse_dump_file(dump_file, handler)

        assert sqlite_backend.get_rows() == shop_rows
        assert result.events_skipped == len(expected) - len(shop_rows)

    def test_table_counts(self, dump_file, sqlite_backend):
        """Counts per table match the generated dump."""
        with ReplayHandler(sqlite_backend) as handler:
            parse_dump_file(dump_file, handler)

        assert sqlite_backend.get_table_counts() == {
            "app.users": 50,
            "shop.orders": 120,
        }


class TestReplayFailures:
    """Tests for aborted replays."""

    def test_malformed_line_stops_replay(self, tmp_path, sqlite_backend):
        """Rows after a malformed line are never written."""
        dump = tmp_path / "broken.sql"
        dump.write_text(
            "USE `app`;\n"
            "INSERT INTO `t` VALUES (1,'ok');\n"
            "INSERT INTO `t` VALUES (2,'broken);\n"
            "INSERT INTO `t` VALUES (3,'never');\n"
        )

        with pytest.raises(MalformedValuesError):
            with ReplayHandler(sqlite_backend, batch_size=1) as handler:
                parse_dump_file(dump, handler)

        assert [row.values[0] for row in sqlite_backend.get_rows()] == ["1"]

    def test_storage_failure_aborts_replay(self, dump_file, sqlite_backend):
        """Storage failures abort the parse as HandlerError."""
        sqlite_backend.execute("DROP TABLE dump_rows")

        with pytest.raises(HandlerError):
            with ReplayHandler(sqlite_backend, batch_size=1) as handler:
                parse_dump_file(dump_file, handler)

    def test_aborted_replay_records_no_binlog_position(self, tmp_path, sqlite_backend):
        """A failed replay leaves no coordinate to resume from."""
        dump = tmp_path / "broken.sql"
        dump.write_text(
            "CHANGE MASTER TO MASTER_LOG_FILE='mysql-bin.000123', MASTER_LOG_POS=45678;\n"
            "USE `app`;\n"
            "INSERT INTO `t` VALUES (1,'broken);\n"
        )

        with pytest.raises(MalformedValuesError):
            with ReplayHandler(sqlite_backend) as handler:
                parse_dump_file(dump, handler)

        assert sqlite_backend.get_binlog_position() is None
        assert sqlite_backend.get_rows() == []


class TestReplayRawBytes:
    """Tests for dumps holding BLOB bytes that are not valid UTF-8."""

    def test_blob_bytes_survive_storage(self, tmp_path, sqlite_backend):
        """Raw bytes are stored and read back unchanged."""
        blob = b"\x89PNG\r\x1a\xff\xfe"
        dump = tmp_path / "blobs.sql"
        dump.write_bytes(
            b"USE `app`;\n"
            b"INSERT INTO `files` VALUES (1,'" + blob + b"');\n"
        )

        with ReplayHandler(sqlite_backend) as handler:
            parse_dump_file(dump, handler)

        [row] = sqlite_backend.get_rows()
        assert row.values[1].encode("utf-8", "surrogateescape") == blob
