"""
Example 02: Grid Requests

This example demonstrates translating a client grid request (sort, search
and paging) into a refined, paginated query and a wire response.
"""

from row_gateway import ColumnMap, ConnectionConfig, Entity, EntityField, Executor, GridRequestTranslator, Mapper
import json
import tempfile
import sqlite3
from pathlib import Path


class Book(Entity):
    """Book entity"""
    resource_id = "example.book"
    column_map = ColumnMap({
        "id": "book_id",
        "name": "title",
        "author": "author",
        "pages": "pages",
        "is_deleted": False,
    })

    author = EntityField(str)
    pages = EntityField(int)


class BookMapper(Mapper[Book]):
    """Gateway for the book table"""
    table = "book"
    entity_class = Book


def main():
    # Set up database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE book (
            book_id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            author TEXT NOT NULL,
            pages INTEGER NOT NULL
        )
    """)
    conn.executemany(
        "INSERT INTO book (title, author, pages) VALUES (?, ?, ?)",
        [
            ("Dune", "Frank Herbert", 412),
            ("Emma", "Jane Austen", 474),
            ("Persuasion", "Jane Austen", 249),
            ("Ulysses", "James Joyce", 730),
        ],
    )
    conn.commit()
    conn.close()

    executor = Executor.from_config(ConnectionConfig(driver="sqlite", database=db_path))
    books = BookMapper(executor)
    translator = GridRequestTranslator()

    print("=== Grid Requests ===\n")

    # Current protocol: nested columns/order/search
    print("1. Current request (search 'austen', order by pages desc):")
    request = {
        "draw": 1,
        "columns": [{"name": "name"}, {"name": "author"}, {"name": "pages"}, {"name": None}],
        "order": [{"column": 2, "dir": "desc"}],
        "search": {"value": "austen", "regex": False},
        "start": 0,
        "length": 10,
    }
    response = translator(books.fetch_all(), Book.column_map, request)
    print(f"   {json.dumps(response.to_wire())}\n")

    # Legacy protocol: flat suffixed keys
    print("2. Legacy request (page 2 of size 2):")
    request = {
        "sEcho": "2",
        "sColumns": "id,name",
        "iColumns": "2",
        "iSortingCols": "1",
        "iSortCol_0": "0",
        "sSortDir_0": "asc",
        "sSearch": "",
        "iDisplayStart": "2",
        "iDisplayLength": "2",
    }
    response = translator(books.fetch_all(), Book.column_map, request)
    print(f"   {json.dumps(response.to_wire())}\n")

    # Column filter with an explicit operator
    print("3. Column filter (pages > 450):")
    request = {
        "draw": 3,
        "columns": [{"name": "name"}, {"name": "pages", "search": {"value": "450", "operator": ">"}}],
        "order": [],
        "start": 0,
        "length": -1,
    }
    response = translator(books.fetch_all(), Book.column_map, request)
    print(f"   Filtered {response.filtered} of {response.total}: {response.rows}\n")

    # Clean up
    executor.connection_manager.close_pool()
    Path(db_path).unlink()


if __name__ == "__main__":
    main()
