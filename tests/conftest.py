import os
from pathlib import Path
from unittest.mock import MagicMock

import psycopg2
import pytest

from staffdb import DataLoader, SchemaManager, StatementCountMaintainer

DATA_PATH = Path(__file__).parent.parent / "data" / "sample_data.json"
TEST_DSN = os.getenv("STAFFDB_TEST_DSN")


@pytest.fixture
def cursor():
    cur = MagicMock()
    cur.rowcount = 0
    return cur


@pytest.fixture
def conn(cursor):
    """Connection mock whose cursor() context yields the cursor fixture"""
    connection = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    cursor.connection = connection
    return connection


@pytest.fixture
def connect():
    """Opens extra connections to the test database, closed after the test"""
    if not TEST_DSN:
        pytest.skip("STAFFDB_TEST_DSN not set")

    opened = []

    def _connect():
        connection = psycopg2.connect(TEST_DSN)
        opened.append(connection)
        return connection

    yield _connect

    for connection in opened:
        if not connection.closed:
            connection.rollback()
            connection.close()


@pytest.fixture
def pg_conn(connect):
    """Fresh staff schema with sample data and back-filled skill counts"""
    connection = connect()
    schema = SchemaManager(connection)
    schema.create_schema()
    schema.create_tables()
    DataLoader(connection).load_data(DATA_PATH)

    with connection.cursor() as cur:
        maintainer = StatementCountMaintainer()
        maintainer.ensure_column(cur)
        maintainer.backfill(cur)
    connection.commit()

    schema.create_functions()
    schema.create_triggers()
    schema.create_views()
    schema.create_indexes()

    yield connection

    connection.rollback()
    schema.drop_schema()
