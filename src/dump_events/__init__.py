"""Parse mysqldump output into binlog-coordinate and row events."""

__version__ = "0.1.0"
