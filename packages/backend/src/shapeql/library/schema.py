"""
Library sample schema: books, authors, coloured boxes and a search union.
"""

from typing import Any

from ..resolution import field_equals, has_field
from ..schema import ExecutableSchema, SchemaBuilder
from .store import LibraryStore

TYPE_DEFS = """
type Book {
  title: String @upper
  author: Author
}

type Author {
  name: String
  books: [Book]
}

interface Box {
  size: Int
  color: String
}

type RedBox implements Box {
  size: Int
  color: String
  weight: Int
}

type BlueBox implements Box {
  size: Int
  color: String
  weight: Int
}

union Result = Book | Author

type Query {
  books: [Book]
  authors: [Author]
  boxs: [Box]
  search(contains: String): [Result]
  boxsFragment(color: String): [Box]
}

type Mutation {
  addBook(title: String, author: String): Book
}

directive @upper on FIELD_DEFINITION | FIELD
"""


def build_resolvers(store: LibraryStore) -> dict[str, dict[str, Any]]:
    """Resolver map over ``store``, keyed by type then field."""

    async def add_book(parent: Any, args: dict[str, Any], context: Any) -> dict[str, Any]:
        return await store.add_book(args.get("title"), args.get("author"))

    return {
        "Author": {
            "books": lambda author, args, context: store.books_by_author(author.get("name")),
        },
        "Query": {
            "books": lambda parent, args, context: store.list_books(),
            "authors": lambda parent, args, context: store.list_authors(),
            "boxs": lambda parent, args, context: store.list_boxes(),
            "search": lambda parent, args, context: store.search(args.get("contains")),
            "boxsFragment": lambda parent, args, context: store.boxes_by_color(args.get("color")),
        },
        "Mutation": {
            "addBook": add_book,
        },
    }


def build_library_schema(store: LibraryStore | None = None) -> ExecutableSchema:
    """Build the library schema over ``store`` (a freshly seeded store by default)."""
    store = store if store is not None else LibraryStore()

    builder = SchemaBuilder()
    builder.add_sdl(TYPE_DEFS)
    builder.add_resolvers(build_resolvers(store))

    # Authors carry a name and books a title; name is checked first.
    builder.add_discriminant("Result", has_field("name", "Author"))
    builder.add_discriminant("Result", has_field("title", "Book"))

    builder.add_discriminant("Box", field_equals("color", "red", "RedBox"))
    builder.add_discriminant("Box", field_equals("color", "blue", "BlueBox"))

    return builder.build()
