"""
Shared fixtures for integration tests.

Provides:
- Generated dump files (plain and gzip)
- Temporary SQLite database for isolated testing
"""

import gzip
import random
from pathlib import Path

import pytest

from dump_events.dump import RowEvent
from dump_events.storage import get_backend

# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


def generate_dump(
    num_users: int = 50,
    num_orders: int = 120,
    seed: int = 42,
) -> tuple[str, list[RowEvent]]:
    """
    Generate a mysqldump-style text with single-row INSERT statements.

    Args:
        num_users: Rows written to app.users
        num_orders: Rows written to shop.orders
        seed: Random seed for reproducibility (default: 42)

    Returns:
        Tuple of (dump text, expected row events in dump order)
    """
    rng = random.Random(seed)

    names = ["Alice", "Bob, Jr.", "O\\'Brien", "Zoë", "Chen (QA)"]
    statuses = ["new", "paid", "shipped", "returned"]

    lines = [
        "-- MySQL dump 10.13  Distrib 8.0.36, for Linux (x86_64)",
        "",
        "CHANGE MASTER TO MASTER_LOG_FILE='mysql-bin.000042', MASTER_LOG_POS=1337;",
        "",
        "USE `app`;",
        "LOCK TABLES `users` WRITE;",
    ]
    expected = []

    for i in range(1, num_users + 1):
        name = rng.choice(names)
        email = f"user{i}@example.com" if rng.random() > 0.2 else None
        email_sql = f"'{email}'" if email else "NULL"
        lines.append(f"INSERT INTO `users` VALUES ({i},'{name}',{email_sql});")
        expected.append(RowEvent("app", "users", [str(i), name, email or "NULL"]))

    lines += ["UNLOCK TABLES;", "", "USE `shop`;"]

    for i in range(1, num_orders + 1):
        user_id = rng.randint(1, num_users)
        total = f"{rng.uniform(1, 500):.2f}"
        status = rng.choice(statuses)
        lines.append(
            f"INSERT INTO `orders` VALUES ({i},{user_id},{total},'{status}');"
        )
        expected.append(
            RowEvent("shop", "orders", [str(i), str(user_id), total, status])
        )

    lines += ["", "-- Dump completed on 2024-01-15 12:30:45", ""]
    return "\n".join(lines), expected


@pytest.fixture
def dump_data() -> tuple[str, list[RowEvent]]:
    """Generated dump text and the rows it contains."""
    return generate_dump()


@pytest.fixture
def dump_file(tmp_path: Path, dump_data) -> Path:
    """Plain dump file."""
    path = tmp_path / "dump.sql"
    path.write_text(dump_data[0], encoding="utf-8")
    return path


@pytest.fixture
def gzip_dump_file(tmp_path: Path, dump_data) -> Path:
    """Gzip-compressed dump file."""
    path = tmp_path / "dump.sql.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write(dump_data[0])
    return path


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_dump_events.db"


@pytest.fixture
def sqlite_backend(temp_db_path: Path):
    """
    Create an initialized SQLite backend with temporary database.

    Automatically cleans up after test.
    """
    backend = get_backend("sqlite", db_path=temp_db_path)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def sample_rows() -> list[RowEvent]:
    """A few row events across two tables."""
    return [
        RowEvent("app", "users", ["1", "Alice", "a@b.com"]),
        RowEvent("app", "users", ["2", "Bob", "NULL"]),
        RowEvent("shop", "orders", ["10", "1", "99.50", "paid"]),
    ]
