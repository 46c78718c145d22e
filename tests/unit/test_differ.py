"""
Тесты для Differ

Проверяет:
1. Направленность diff (поля только в A игнорируются, только в B — включаются)
2. Закон тождества: diff(prepare(e), prepare(e)) пуст
3. diff_entities для реальных изменений сущностей
4. EntityDiffer.compute: CREATE / UPDATE / отсутствие изменений
5. Сериализацию ChangeSet по контракту change_set
"""

import pytest
from jsonschema import ValidationError

from src.changeset import (
    ChangeKind,
    ChangeSet,
    EntityDiffer,
    diff,
    diff_entities,
    prepare_entity,
)
from src.core.domain import Reference
from tests.unit.library_model import Author, Book, Edition, Publisher


@pytest.fixture
def differ(registry) -> EntityDiffer:
    return EntityDiffer(registry)


# =============================================================================
# DIFF
# =============================================================================


class TestDiff:
    """Тесты для diff"""

    def test_directionality(self) -> None:
        """A = {x:1, y:2}, B = {x:1, y:3, z:4} → {y:3, z:4}"""
        assert diff({"x": 1, "y": 2}, {"x": 1, "y": 3, "z": 4}) == {"y": 3, "z": 4}

    def test_fields_only_in_a_ignored(self) -> None:
        assert diff({"x": 1, "gone": 2}, {"x": 1}) == {}

    def test_structural_comparison(self) -> None:
        a = {"tags": ["a", "b"], "meta": {"k": 1, "n": 2}}
        b = {"tags": ["a", "b"], "meta": {"n": 2, "k": 1}}
        assert diff(a, b) == {}

    def test_list_order_is_change(self) -> None:
        assert diff({"tags": ["a", "b"]}, {"tags": ["b", "a"]}) == {"tags": ["b", "a"]}

    def test_number_to_bool_is_change(self) -> None:
        assert diff({"active": 1}, {"active": True}) == {"active": True}
        assert diff({"active": False}, {"active": 0}) == {"active": 0}

    def test_null_vs_missing_is_change(self) -> None:
        assert diff({}, {"author": None}) == {"author": None}

    def test_result_follows_b_order(self) -> None:
        b = {"z": 1, "a": 2, "m": 3}
        assert list(diff({}, b)) == ["z", "a", "m"]


# =============================================================================
# DIFF ENTITIES
# =============================================================================


class TestDiffEntities:
    """Тесты для diff_entities"""

    def test_identity_law(self, registry, book) -> None:
        assert diff(prepare_entity(book, registry), prepare_entity(book, registry)) == {}
        assert diff_entities(book, book, registry) == {}

    def test_identity_law_for_composite_entity(self, registry) -> None:
        edition = Edition(year=2001, code="b", pages=320)
        assert diff_entities(edition, edition, registry) == {}

    def test_scalar_and_reference_changes(self, registry, author, publisher) -> None:
        before = Book("Title", id=1, author=author, publisher=Reference(publisher), price=5.0)
        other_publisher = Publisher("Tor", id=8)
        after = Book("New title", id=1, author=author, publisher=Reference(other_publisher), price=5.0)

        assert diff_entities(before, after, registry) == {"title": "New title", "publisher": 8}

    def test_custom_codec_compared_in_storage_form(self, registry, author) -> None:
        """9.999 и 10.0 — одинаковые центы, изменений нет"""
        before = Book("Title", id=1, author=author, price=9.999)
        after = Book("Title", id=1, author=author, price=10.0)
        assert diff_entities(before, after, registry) == {}

    def test_collection_changes_invisible(self, registry) -> None:
        before = Author("A", id=1)
        after = Author("A", id=1)
        after.books.add(Book("B", id=2))
        assert diff_entities(before, after, registry) == {}

    def test_mutation_after_snapshot(self, differ, author) -> None:
        author.settings = {"theme": "dark"}
        snapshot = differ.snapshot(author)

        author.settings["theme"] = "light"
        author.name = "Ursula K."

        assert diff(snapshot, differ.snapshot(author)) == {
            "name": "Ursula K.",
            "settings": {"theme": "light"},
        }

    def test_snapshot_and_entity_mixed(self, differ, author) -> None:
        snapshot = differ.snapshot(author)
        author.email = None
        assert differ.diff_entities(snapshot, author) == {"email": None}


# =============================================================================
# COMPUTE / CHANGE SET
# =============================================================================


class TestCompute:
    """Тесты для EntityDiffer.compute"""

    def test_new_entity_is_create(self, differ, book) -> None:
        change_set = differ.compute(book)

        assert change_set.kind == ChangeKind.CREATE
        assert change_set.entity == "Book"
        assert change_set.identity == 10
        assert change_set.changes["title"] == "The Dispossessed"

    def test_update_contains_only_changes(self, differ, book) -> None:
        original = differ.snapshot(book)
        book.title = "The Left Hand of Darkness"

        change_set = differ.compute(book, original)

        assert change_set.kind == ChangeKind.UPDATE
        assert change_set.changes == {"title": "The Left Hand of Darkness"}

    def test_no_changes_is_none(self, differ, book) -> None:
        assert differ.compute(book, differ.snapshot(book)) is None

    def test_composite_identity(self, differ) -> None:
        edition = Edition(year=2001, code="b")
        original = differ.snapshot(edition)
        edition.pages = 400

        change_set = differ.compute(edition, original)

        assert change_set.entity == "BookEdition"
        assert change_set.identity == "2001~b"
        assert change_set.changes == {"pages": 400}


class TestChangeSetContract:
    """Тесты сериализации ChangeSet"""

    def test_to_dict(self, differ, book) -> None:
        data = differ.compute(book).to_dict()

        assert data["entity"] == "Book"
        assert data["kind"] == "create"
        assert data["identity"] == 10
        assert data["changes"]["price"] == 999

    def test_opaque_identity_serialized_as_string(self) -> None:
        class ObjectId:
            def __str__(self) -> str:
                return "507f1f77bcf86cd799439011"

        data = ChangeSet(
            entity="Doc", kind=ChangeKind.UPDATE, identity=ObjectId(), changes={"a": 1}
        ).to_dict()
        assert data["identity"] == "507f1f77bcf86cd799439011"

    def test_contract_violation(self) -> None:
        with pytest.raises(ValidationError):
            ChangeSet(entity="", kind=ChangeKind.CREATE, identity=None).to_dict()
