"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Any

import pytest

from row_gateway.core.connection import ConnectionConfig
from row_gateway.core.executor import Executor
from row_gateway.mapping.columns import ColumnMap
from row_gateway.mapping.entity import Entity, EntityField
from row_gateway.repository.mapper import Mapper

PEOPLE_DDL = """
CREATE TABLE people (
    person_id INTEGER PRIMARY KEY,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT,
    age INTEGER,
    is_deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
)
"""

# person_id, first_name, last_name, age, is_deleted, created_at
PEOPLE_ROWS: list[tuple[Any, ...]] = [
    (10, "Alice", "Smith", 34, 0, "2024-01-02 03:04:05"),
    (20, "Bob", "Jones", 27, 0, "2023-06-30 12:00:00"),
    (30, "Carol", "Smithers", 45, 0, None),
    (40, "Dave", "Brown", 51, 1, "0000-00-00 00:00:00"),
    (50, "Eve", "Smith", 19, 0, "2022-12-25 08:30:00"),
]


class Person(Entity):
    resource_id = "tests.person"
    default_singular_noun = "person"
    default_plural_noun = "people"
    column_map = ColumnMap(
        {
            "id": "person_id",
            "name": "first_name",
            "last_name": "last_name",
            "full_name": "first_name || ' ' || last_name",
            "age": "age",
            "is_deleted": "is_deleted",
            "is_active": "!is_deleted",
            "created_at": "created_at",
        }
    )

    last_name = EntityField(str)
    age = EntityField(int)
    created_at = EntityField(datetime)


class PersonMapper(Mapper[Person]):
    table = "people"
    entity_class = Person
    active_row_state = {"is_deleted": 0}
    deleted_row_state = {"is_deleted": 1}


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config.

    One connection only: every in-memory connection is its own database.
    """
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def executor(sqlite_config: ConnectionConfig) -> Iterator[Executor]:
    executor = Executor.from_config(sqlite_config)
    yield executor
    executor.connection_manager.close_pool()


@pytest.fixture
def people_executor(executor: Executor) -> Executor:
    """Executor over a seeded ``people`` table (Dave is soft-deleted)."""
    executor.execute(PEOPLE_DDL)
    for row in PEOPLE_ROWS:
        executor.execute("INSERT INTO people VALUES (?, ?, ?, ?, ?, ?)", row)
    return executor


@pytest.fixture
def person_mapper(people_executor: Executor) -> PersonMapper:
    return PersonMapper(people_executor)
