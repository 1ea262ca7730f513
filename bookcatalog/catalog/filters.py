"""
Catalog filtering.

Pure functions over an already-fetched book list. Nothing here caches:
callers recompute on every read so the view always reflects the current
books, query and category.
"""

from typing import Iterable
from urllib.parse import quote

from bookcatalog.storage.models import Book


# Selector value meaning "no category filter"
ALL_CATEGORIES = "Todas"

SUGGESTED_CATEGORIES = (
    "Ficción", "No Ficción", "Ciencia Ficción", "Fantasía", "Misterio",
    "Terror", "Romance", "Historia", "Biografía", "Ciencia",
    "Tecnología", "Negocios", "Autoayuda", "Salud", "Infantil",
    "Arte", "Cocina", "Viajes", "Religión", "Política",
)

PLACEHOLDER_COVER_TEMPLATE = "https://picsum.photos/seed/{seed}/300/400"

# Characters encodeURIComponent leaves alone besides alphanumerics and "_.-~"
_URI_COMPONENT_SAFE = "!*'()"


def matches_category(book: Book, category: str) -> bool:
    """Exact, case-sensitive category match; the sentinel matches everything."""
    return category == ALL_CATEGORIES or book.category == category


def matches_query(book: Book, query: str) -> bool:
    """Case-insensitive substring match on title, author or category."""
    if not query:
        return True
    needle = query.lower()
    return (
        needle in book.title.lower()
        or needle in book.author.lower()
        or needle in book.category.lower()
    )


def filter_books(
    books: Iterable[Book],
    query: str = "",
    category: str = ALL_CATEGORIES,
) -> list[Book]:
    """
    Derive the visible catalog.

    Args:
        books: Full book set in fetch order
        query: Free-text search, empty for no search
        category: Selected category or ``ALL_CATEGORIES``

    Returns:
        Books passing both the category and the query test, in input order.
    """
    return [
        book for book in books
        if matches_category(book, category) and matches_query(book, query)
    ]


def available_categories(books: Iterable[Book]) -> list[str]:
    """Distinct non-empty categories, sorted."""
    return sorted({book.category for book in books if book.category})


def placeholder_cover_url(title: str) -> str:
    """Deterministic placeholder cover seeded by the title."""
    return PLACEHOLDER_COVER_TEMPLATE.format(seed=quote(title, safe=_URI_COMPONENT_SAFE))
