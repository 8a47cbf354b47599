"""Integration tests against a real SQLite in-memory database.

Covers: schema discovery, row-state filtering, reads, the whitelisted
write path and grid translation end-to-end.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from row_gateway.core.enums import RowState
from row_gateway.core.exceptions import QueryExecutionError, SchemaError
from row_gateway.core.executor import Executor
from row_gateway.grid.translator import GridRequestTranslator
from row_gateway.mapping.columns import ColumnMap
from row_gateway.repository.mapper import Mapper
from conftest import Person, PersonMapper


def _ids(result: object) -> list[int]:
    return [person.id for person in result]  # type: ignore[attr-defined]


@pytest.mark.integration
class TestExecutor:
    def test_fetch_scalar(self, people_executor: Executor) -> None:
        assert people_executor.fetch_scalar("SELECT COUNT(*) FROM people") == 5

    def test_fetch_one_none(self, people_executor: Executor) -> None:
        assert people_executor.fetch_one("SELECT * FROM people WHERE person_id = ?", (999,)) is None

    def test_regexp_function(self, people_executor: Executor) -> None:
        rows = people_executor.fetch_all(
            "SELECT first_name FROM people WHERE last_name REGEXP ? ORDER BY person_id", ("^Smith$",)
        )
        assert [r["first_name"] for r in rows] == ["Alice", "Eve"]

    def test_driver_error_wrapped(self, people_executor: Executor) -> None:
        with pytest.raises(QueryExecutionError, match="no such table"):
            people_executor.fetch_all("SELECT * FROM nowhere")


@pytest.mark.integration
class TestSchemaDiscovery:
    def test_columns(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.columns == [
            "person_id",
            "first_name",
            "last_name",
            "age",
            "is_deleted",
            "created_at",
        ]

    def test_primary_key(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.get_primary_key() == "person_id"

    def test_composite_primary_key(self, executor: Executor) -> None:
        executor.execute(
            "CREATE TABLE memberships "
            "(group_id INTEGER, person_id INTEGER, PRIMARY KEY (group_id, person_id))"
        )

        class MembershipMapper(Mapper):
            table = "memberships"

        assert MembershipMapper(executor).get_primary_key() == ("group_id", "person_id")

    def test_missing_table(self, executor: Executor) -> None:
        class GhostMapper(Mapper):
            table = "ghosts"

        with pytest.raises(SchemaError, match="'ghosts'"):
            GhostMapper(executor).columns


@pytest.mark.integration
class TestReads:
    def test_fetch(self, person_mapper: PersonMapper) -> None:
        person = person_mapper.fetch(10)
        assert isinstance(person, Person)
        assert person.name == "Alice"
        assert person.age == 34
        assert person.created_at == datetime(2024, 1, 2, 3, 4, 5)

    def test_fetch_missing(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.fetch(999) is None

    def test_fetch_respects_row_state(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.fetch(40) is None
        dave = person_mapper.set_row_state(RowState.DELETED).fetch(40)
        assert dave is not None
        assert dave.name == "Dave"
        assert dave.created_at is None
        assert dave.get("is_active") is False

    def test_row_states_exclusive(self, person_mapper: PersonMapper) -> None:
        active = set(_ids(person_mapper.set_row_state(RowState.ACTIVE).fetch_all()))
        deleted = set(_ids(person_mapper.set_row_state(RowState.DELETED).fetch_all()))
        everyone = set(_ids(person_mapper.set_row_state(RowState.ALL).fetch_all()))
        assert active == {10, 20, 30, 50}
        assert deleted == {40}
        assert active | deleted == everyone

    def test_fetch_all_count_and_pages(self, person_mapper: PersonMapper) -> None:
        result = person_mapper.fetch_all()
        assert result.count() == 4
        assert result.page_count() == 1
        result.query.add_order("person_id")
        assert _ids(result.set_page(3, 2)) == [50]

    def test_fetch_by_keys_input_order(self, person_mapper: PersonMapper) -> None:
        assert _ids(person_mapper.fetch_by_keys([30, 10, 20])) == [30, 10, 20]

    def test_fetch_by_keys_skips_deleted(self, person_mapper: PersonMapper) -> None:
        assert _ids(person_mapper.fetch_by_keys([40, 10])) == [10]

    def test_fetch_by_keys_other_column(self, person_mapper: PersonMapper) -> None:
        result = person_mapper.fetch_by_keys(["Jones", "Smith"], column="last_name")
        assert [p.get("last_name") for p in result] == ["Jones", "Smith", "Smith"]

    def test_fetch_by_keys_empty(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.fetch_by_keys([]) is None
        assert person_mapper.fetch_by_keys(key for key in ()) is None

    def test_result_set_alternate_entity(self, person_mapper: PersonMapper) -> None:
        class Name(Person):
            column_map = ColumnMap({"id": "person_id", "name": "last_name"})

        select = person_mapper.base_query().add_where("person_id = ?", 20)
        name = person_mapper.result_set(select, fetch_all=False, entity_class=Name)
        assert isinstance(name, Name)
        assert str(name) == "Jones"

    def test_hydrate_extract_round_trip(self, person_mapper: PersonMapper) -> None:
        person = person_mapper.fetch(10)
        assert person is not None
        copy = Person(person.to_dict())
        assert copy.to_dict() == person.to_dict()
        assert copy.created_at == person.created_at


@pytest.mark.integration
class TestWrites:
    def test_create(self, person_mapper: PersonMapper) -> None:
        person = person_mapper.create({"first_name": "Frank", "last_name": "Hill", "age": 60, "bogus": 1})
        assert person is not None
        assert person.id is not None
        fetched = person_mapper.fetch(person.id)
        assert fetched is not None
        assert fetched.name == "Frank"

    def test_create_from_entity(self, person_mapper: PersonMapper) -> None:
        person = Person({"first_name": "Gina", "is_deleted": 0})
        created = person_mapper.create(person)
        assert created is person
        assert person.id == person_mapper.executor.fetch_scalar("SELECT MAX(person_id) FROM people")

    def test_create_with_explicit_key(self, person_mapper: PersonMapper) -> None:
        person = person_mapper.create({"person_id": 77, "first_name": "H"})
        assert person is not None
        assert person.id == 77

    def test_update_with_criteria(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.update({"age": 99}, {"last_name": "Smith"}) == 2
        assert person_mapper.fetch(50).age == 99

    def test_update_entity(self, person_mapper: PersonMapper) -> None:
        person = person_mapper.fetch(20)
        person.age = 28
        assert person_mapper.update(person) == 1
        assert person_mapper.fetch(20).age == 28

    def test_update_qualified_keys(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.update({"people.age": 1, "evil; DROP": 2}, {"person_id": 30}) == 1
        assert person_mapper.fetch(30).age == 1

    def test_mark_deleted_idempotent(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.mark_deleted({"person_id": 10}) == 1
        assert person_mapper.mark_deleted({"person_id": 10}) == 1
        assert person_mapper.fetch(10) is None
        assert person_mapper.set_row_state(RowState.DELETED).fetch(10) is not None

    def test_undelete(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.undelete({"person_id": 40}) == 1
        assert person_mapper.fetch(40) is not None

    def test_upsert_insert_then_update(self, person_mapper: PersonMapper) -> None:
        key = person_mapper.upsert({"person_id": 60, "first_name": "Ivy", "age": 20})
        assert key == 60
        key = person_mapper.upsert(
            {"person_id": 60, "first_name": "Ivy", "age": 5},
            override_updates={"age": "age + excluded.age"},
        )
        assert key == 60
        assert person_mapper.fetch(60).age == 25

    def test_upsert_replaces_columns(self, person_mapper: PersonMapper) -> None:
        assert person_mapper.upsert({"person_id": 20, "last_name": "Jonas"}) == 20
        bob = person_mapper.fetch(20)
        assert bob.get("last_name") == "Jonas"
        assert bob.name == "Bob"


@pytest.mark.integration
class TestGrid:
    def test_current_variant_sort(self, person_mapper: PersonMapper) -> None:
        params = {
            "start": 0,
            "length": 10,
            "draw": 5,
            "order": [{"column": 0, "dir": "desc"}],
            "columns": [{"name": "getAge"}],
            "search": {"value": ""},
        }
        response = GridRequestTranslator()(person_mapper.fetch_all(), ColumnMap({"getAge": "age"}), params)
        assert response.token == 5
        assert [f.sql for f in response.result.query.order] == ["age DESC"]
        ages = [person.age for person in response.result]
        assert ages == [45, 34, 27, 19]
        assert response.to_wire()["draw"] == 5

    def test_legacy_global_search(self, person_mapper: PersonMapper) -> None:
        column_map = ColumnMap(
            {"last_name": "last_name", "full_name": "first_name || ' ' || last_name"}
        )
        params = {
            "sEcho": "1",
            "sColumns": "id,name,last_name",
            "iColumns": "3",
            "sSearch": "smith",
            "bRegex": "false",
            "iSortingCols": "1",
            "iSortCol_0": "0",
            "sSortDir_0": "asc",
            "iDisplayStart": "0",
            "iDisplayLength": "10",
        }
        response = GridRequestTranslator()(person_mapper.fetch_all(), column_map, params)
        (predicate,) = response.result.query.having
        assert predicate.sql == (
            "((last_name LIKE ?) OR ((first_name || ' ' || last_name) LIKE ?))"
        )
        assert predicate.params == ("%smith%", "%smith%")
        wire = response.to_wire()
        assert wire["sEcho"] == 1
        assert wire["iTotalRecords"] == 4
        assert wire["iTotalDisplayRecords"] == 3
        assert sorted(row[1] for row in wire["aaData"]) == ["Alice", "Carol", "Eve"]

    def test_paging_and_filter_counts(self, person_mapper: PersonMapper) -> None:
        params = {
            "draw": "3",
            "columns": [
                {"name": "id"},
                {"name": "name"},
                {"name": "created_at"},
                {"name": None, "orderable": False},
            ],
            "order": [{"column": 0, "dir": "asc"}],
            "search": {"value": "", "regex": False},
            "start": 2,
            "length": 2,
        }
        response = GridRequestTranslator()(person_mapper.fetch_all(), Person.column_map, params)
        assert response.result.page_number == 2
        assert response.total == 4
        assert response.filtered == 4
        assert response.rows == [
            [30, "Carol", None, None],
            [50, "Eve", "2022-12-25T08:30:00", None],
        ]

    def test_column_regex_filter(self, person_mapper: PersonMapper) -> None:
        params = {
            "draw": 1,
            "columns": [
                {"name": "name"},
                {"name": "last_name", "search": {"value": "^Smith", "regex": True}},
            ],
            "order": [{"column": 0, "dir": "asc"}],
            "search": {"value": ""},
            "start": 0,
            "length": -1,
        }
        response = GridRequestTranslator()(person_mapper.fetch_all(), Person.column_map, params)
        assert response.filtered == 3
        assert [row[0] for row in response.rows] == ["Alice", "Carol", "Eve"]

    def test_explicit_operator(self, person_mapper: PersonMapper) -> None:
        params = {
            "draw": 1,
            "columns": [{"name": "age"}],
            "order": [],
            "search": {"value": "40", "operator": ">"},
            "start": 0,
            "length": 10,
        }
        response = GridRequestTranslator()(
            person_mapper.fetch_all(), Person.column_map, params, search_fields=["age"]
        )
        assert response.rows == [[45]]

    def test_search_text_is_bound(self, person_mapper: PersonMapper) -> None:
        params = {
            "draw": 1,
            "columns": [{"name": "name"}],
            "order": [],
            "search": {"value": "' OR 1=1 --"},
            "start": 0,
            "length": 10,
        }
        response = GridRequestTranslator()(person_mapper.fetch_all(), Person.column_map, params)
        assert response.filtered == 0
        assert response.total == 4

    def test_original_result_still_usable(self, person_mapper: PersonMapper) -> None:
        original = person_mapper.fetch_all()
        params = {"draw": 1, "columns": [{"name": "name", "search": {"value": "Bob"}}], "start": 0, "length": 10}
        response = GridRequestTranslator()(original, Person.column_map, params)
        assert response.filtered == 1
        assert original.count() == 4
        assert len(original.items()) == 4

    def test_empty_search_fields_search_every_field(self, person_mapper: PersonMapper) -> None:
        params = {
            "draw": 1,
            "columns": [{"name": "name"}],
            "order": [],
            "search": {"value": "Smith"},
            "start": 0,
            "length": 10,
        }
        response = GridRequestTranslator()(
            person_mapper.fetch_all(), Person.column_map, params, search_fields=[]
        )
        assert response.filtered == 3
        assert response.total == 4
