# File: tests/conftest.py
# Pytest fixtures: Django configured against an in-memory SQLite database.

from typing import Generator, List

import pytest

from schema_loader.django_setup import setup_django


TEST_DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}


@pytest.fixture(scope="session")
def django_db_setup() -> None:
    """Configure Django once for the whole session."""
    setup_django(TEST_DATABASES, secret_key="schema-loader-tests")


@pytest.fixture
def sqlite_connection(django_db_setup):
    """The Django connection of the in-memory test database."""
    from django.db import connection

    connection.ensure_connection()
    return connection


@pytest.fixture
def create_tables(sqlite_connection) -> Generator:
    """
    Create tables from DDL statements and drop them after the test.

    Usage:
        create_tables("CREATE TABLE artist (...)", "CREATE TABLE cd (...)")
    """
    created: List[str] = []

    def _create(*statements: str) -> None:
        with sqlite_connection.cursor() as cursor:
            for statement in statements:
                cursor.execute(statement)
                # "CREATE TABLE <name> (" -> <name>
                created.append(statement.split("(", 1)[0].split()[-1])

    yield _create

    with sqlite_connection.cursor() as cursor:
        for table in reversed(created):
            cursor.execute(f"DROP TABLE IF EXISTS {table}")


MUSIC_SCHEMA = (
    """
    CREATE TABLE artist (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL UNIQUE
    )
    """,
    """
    CREATE TABLE cd (
        id INTEGER PRIMARY KEY,
        artist_id INTEGER NOT NULL REFERENCES artist (id),
        title VARCHAR(200) NOT NULL,
        year INTEGER
    )
    """,
    """
    CREATE TABLE track (
        trackid INTEGER PRIMARY KEY,
        cd INTEGER NOT NULL REFERENCES cd,
        position INTEGER NOT NULL,
        title VARCHAR(200),
        UNIQUE (cd, position)
    )
    """,
)


@pytest.fixture
def music_schema(create_tables):
    """artist <- cd <- track, the last referencing the primary key implicitly."""
    create_tables(*MUSIC_SCHEMA)
