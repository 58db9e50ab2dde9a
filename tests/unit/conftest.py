"""
Pytest configuration and shared fixtures for unit tests.
"""

import pytest

from dump_events.dump import HandlerResult, ParseHandler

SAMPLE_DUMP = """\
-- MySQL dump 10.13  Distrib 8.0.36, for Linux (x86_64)
--
-- Position to start replication or point-in-time recovery from
--

CHANGE MASTER TO MASTER_LOG_FILE='mysql-bin.000123', MASTER_LOG_POS=45678;

--
-- Current Database: `app`
--

CREATE DATABASE /*!32312 IF NOT EXISTS*/ `app`;

USE `app`;

DROP TABLE IF EXISTS `users`;
CREATE TABLE `users` (
  `id` int NOT NULL,
  `name` varchar(64) DEFAULT NULL,
  `email` varchar(128) DEFAULT NULL,
  PRIMARY KEY (`id`)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

LOCK TABLES `users` WRITE;
INSERT INTO `users` VALUES (1,'Alice','a@b.com');
INSERT INTO `users` VALUES (2,'Bob, Jr.',NULL);
UNLOCK TABLES;

USE `billing`;

INSERT INTO `invoices` VALUES (10,2,'it\\'s paid (finally)',99.50);
"""


class RecordingHandler(ParseHandler):
    """Handler that records every call and answers with configurable results."""

    def __init__(self, binlog_result=None, data_result=None):
        self.binlog_result = binlog_result
        self.data_result = data_result
        self.calls: list[tuple] = []

    def binlog(self, name, pos):
        self.calls.append(("binlog", name, pos))
        return self.binlog_result

    def data(self, schema, table, values):
        self.calls.append(("data", schema, table, values))
        return self.data_result

    @property
    def binlog_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "binlog"]

    @property
    def data_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "data"]


@pytest.fixture
def sample_dump() -> str:
    """Text of a small mysqldump with two schemas."""
    return SAMPLE_DUMP


@pytest.fixture
def handler_factory():
    """The RecordingHandler class, for tests needing custom answers."""
    return RecordingHandler


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Handler recording all events, always continuing."""
    return RecordingHandler()


@pytest.fixture
def skipping_handler() -> RecordingHandler:
    """Handler recording all events, skipping every one."""
    return RecordingHandler(
        binlog_result=HandlerResult.SKIP, data_result=HandlerResult.SKIP
    )
