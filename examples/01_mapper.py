"""
Example 01: Table Gateway

This example demonstrates an Entity with a column map, a Mapper with
soft-delete row states, and the whitelisted write path.
"""

from row_gateway import ColumnMap, ConnectionConfig, Entity, EntityField, Executor, Mapper, RowState
import tempfile
import sqlite3
from pathlib import Path


class Person(Entity):
    """Person entity"""
    resource_id = "example.person"
    default_singular_noun = "person"
    default_plural_noun = "people"
    column_map = ColumnMap({
        "id": "person_id",
        "name": "first_name",
        "last_name": "last_name",
        "full_name": "first_name || ' ' || last_name",
        "is_deleted": "person_isdeleted",
    })

    last_name = EntityField(str)


class PersonMapper(Mapper[Person]):
    """Gateway for the person table"""
    table = "person"
    entity_class = Person
    active_row_state = {"person_isdeleted": 0}
    deleted_row_state = {"person_isdeleted": 1}


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE person (
            person_id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            person_isdeleted INTEGER NOT NULL DEFAULT 0
        )
    """)
    conn.execute("INSERT INTO person (first_name, last_name) VALUES ('Alice', 'Smith')")
    conn.execute("INSERT INTO person (first_name, last_name) VALUES ('Bob', 'Jones')")
    conn.execute("INSERT INTO person (first_name, last_name) VALUES ('Carol', 'Smithers')")
    conn.commit()
    conn.close()

    executor = Executor.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    people = PersonMapper(executor)

    print("=== Table Gateway ===\n")

    # Discovered schema
    print("1. Discovered schema:")
    print(f"   Columns: {people.columns}")
    print(f"   Primary key: {people.get_primary_key()}\n")

    # Fetch by key
    print("2. Fetch by key:")
    alice = people.fetch(1)
    if alice:
        print(f"   Found: {alice} {alice.last_name}\n")

    # Fetch by keys, in the order given
    print("3. Fetch by keys [3, 1, 2]:")
    for person in people.fetch_by_keys([3, 1, 2]):
        print(f"   - {person.id}: {person}")
    print()

    # Create; unknown keys are dropped by the column whitelist
    print("4. Create:")
    dave = people.create({"first_name": "Dave", "last_name": "Brown", "is_admin": 1})
    print(f"   Created person with ID: {dave.id}\n")

    # Update through the entity
    print("5. Update:")
    dave = people.fetch(dave.id)
    dave.last_name = "Browne"
    print(f"   Rows updated: {people.update(dave)}\n")

    # Soft delete
    print("6. Soft delete Bob:")
    people.delete({"person_id": 2})
    print(f"   Active: {[str(p) for p in people.fetch_all()]}")
    people.set_row_state(RowState.DELETED)
    print(f"   Deleted: {[str(p) for p in people.fetch_all()]}\n")

    # Upsert
    print("7. Upsert:")
    key = people.upsert({"person_id": 1, "first_name": "Alicia", "last_name": "Smith"})
    people.set_row_state(RowState.ALL)
    print(f"   Upserted #{key}: {people.fetch(key)}\n")

    # Clean up
    executor.connection_manager.close_pool()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
