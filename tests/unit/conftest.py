"""Общие fixtures: реестр метаданных и экземпляры доменной модели."""

import pytest

from src.core.domain import MetadataStorage, Reference
from tests.unit.library_model import Author, Book, Publisher, build_registry


@pytest.fixture
def registry() -> MetadataStorage:
    """Реестр метаданных библиотеки."""
    return build_registry()


@pytest.fixture
def author() -> Author:
    """Сохранённый автор (id назначен)."""
    return Author(name="Ursula", id=1, email="ursula@example.com")


@pytest.fixture
def publisher() -> Publisher:
    return Publisher(name="Ace", id=7)


@pytest.fixture
def book(author, publisher) -> Book:
    """Сохранённая книга: автор напрямую, издатель через Reference."""
    return Book(
        title="The Dispossessed",
        id=10,
        author=author,
        publisher=Reference(publisher),
        price=9.99,
    )
