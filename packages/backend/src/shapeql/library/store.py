"""
In-memory data access for the library sample schema.

Records are plain mappings; the host's default field resolver reads their
keys, and the sample discriminants inspect them by shape.
"""

import copy
from typing import Any

from ..logging import get_logger

logger = get_logger(__name__)

SEED_BOOKS: list[dict[str, Any]] = [
    {
        "title": "Harry Potter and the Chamber of Secrets",
        "author": {"name": "J.K. Rowling"},
    },
    {
        "title": "Jurassic Park",
        "author": {"name": "Michael Crichton"},
    },
]

SEED_AUTHORS: list[dict[str, Any]] = [
    {"name": "David"},
]

SEED_BOXES: list[dict[str, Any]] = [
    {"size": 10, "color": "red"},
    {"size": 20, "color": "blue"},
]


class LibraryStore:
    """Books, authors and boxes held in lists, newest book first."""

    def __init__(
        self,
        books: list[dict[str, Any]] | None = None,
        authors: list[dict[str, Any]] | None = None,
        boxes: list[dict[str, Any]] | None = None,
    ):
        self.books = copy.deepcopy(SEED_BOOKS if books is None else books)
        self.authors = copy.deepcopy(SEED_AUTHORS if authors is None else authors)
        self.boxes = copy.deepcopy(SEED_BOXES if boxes is None else boxes)

    def list_books(self) -> list[dict[str, Any]]:
        return self.books

    def list_authors(self) -> list[dict[str, Any]]:
        return self.authors

    def list_boxes(self) -> list[dict[str, Any]]:
        return self.boxes

    def books_by_author(self, author_name: str | None) -> list[dict[str, Any]]:
        return [book for book in self.books if book.get("author", {}).get("name") == author_name]

    def boxes_by_color(self, color: str | None) -> list[dict[str, Any]]:
        return [box for box in self.boxes if box.get("color") == color]

    def search(self, contains: str | None) -> list[dict[str, Any]]:
        """Books whose title, and authors whose name, contain ``contains``.

        A missing search term matches every record. It is not stringified,
        so a missing term does not search for the text ``"undefined"`` and
        return nothing.
        """
        results = []
        for item in [*self.books, *self.authors]:
            text = item.get("name") or item.get("title") or ""
            if contains is None or contains in text:
                results.append(item)
        return results

    async def add_book(self, title: str | None, author: str | None) -> dict[str, Any]:
        book = {"title": title, "author": {"name": author}}
        self.books.insert(0, book)
        logger.info("Added book", title=title, author=author)
        return book
