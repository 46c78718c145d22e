"""
Тесты для доменных коллабораторов: Entity, Reference, Collection, метаданные

Проверяет:
1. Распознавание сущностей по маркеру, теги типа
2. Reference / Collection / UNSET семантику
3. Валидацию Pydantic моделей метаданных (frozen, ключи, порядок свойств)
4. MetadataStorage: регистрация, lookup, MetadataNotFoundError
5. Построение реестра из декларативных определений (JSON Schema контракт)
"""

import copy

import pytest
from jsonschema import ValidationError as SchemaValidationError
from pydantic import ValidationError

from src.core.domain import (
    UNSET,
    Collection,
    CustomType,
    Entity,
    EntityMetadata,
    MetadataNotFoundError,
    MetadataStorage,
    PropertyDescriptor,
    Reference,
    ReferenceKind,
    entity_type_of,
    is_collection,
    is_entity,
    is_object_id,
    is_reference,
    is_unset,
    meta_of,
    unwrap_reference,
    wrap_reference,
)
from tests.unit.library_model import (
    AUTHOR_META,
    BOOK_META,
    Author,
    Book,
    Edition,
    Publisher,
)


class ObjectId:
    """Имитация идентификатора внешнего драйвера (bson.ObjectId)."""

    def __init__(self, value: str):
        self.value = value

    def __str__(self) -> str:
        return self.value


# =============================================================================
# ENTITY MARKERS
# =============================================================================


class TestEntityMarkers:
    """Тесты для is_entity / entity_type_of / is_object_id"""

    def test_entity_instance_detected(self, author) -> None:
        assert is_entity(author) is True

    def test_entity_class_is_not_instance(self) -> None:
        assert is_entity(Author) is False

    def test_plain_values_are_not_entities(self) -> None:
        assert is_entity({"id": 1}) is False
        assert is_entity(None) is False
        assert is_entity(1) is False

    def test_duck_typed_marker(self) -> None:
        """Сущность распознаётся по маркеру, а не по наследованию"""

        class Foreign:
            __entity__ = True

        assert is_entity(Foreign()) is True

    def test_reference_counts_only_when_allowed(self, publisher) -> None:
        ref = Reference(publisher)
        assert is_entity(ref) is False
        assert is_entity(ref, allow_reference=True) is True

    def test_entity_type_tag(self, author) -> None:
        assert entity_type_of(author) == "Author"
        assert entity_type_of(Edition(2020, "A")) == "BookEdition"

    def test_object_id_detected_structurally(self) -> None:
        assert is_object_id(ObjectId("507f1f77bcf86cd799439011")) is True
        assert is_object_id("507f1f77bcf86cd799439011") is False
        assert is_object_id({"$oid": "x"}) is False


# =============================================================================
# UNSET / REFERENCE / COLLECTION
# =============================================================================


class TestUnset:
    """Тесты для UNSET sentinel"""

    def test_unset_is_falsy_singleton(self) -> None:
        assert not UNSET
        assert is_unset(UNSET) is True
        assert is_unset(None) is False

    def test_unset_survives_copy(self) -> None:
        assert copy.deepcopy(UNSET) is UNSET
        assert copy.copy(UNSET) is UNSET


class TestReference:
    """Тесты для Reference"""

    def test_wrap_and_unwrap(self, publisher) -> None:
        ref = Reference(publisher)
        assert ref.unwrap() is publisher
        assert unwrap_reference(ref) is publisher
        assert unwrap_reference(publisher) is publisher
        assert is_reference(ref) is True

    def test_create_is_idempotent(self, publisher) -> None:
        ref = Reference.create(publisher)
        assert Reference.create(ref) is ref

    def test_only_entities_can_be_wrapped(self) -> None:
        with pytest.raises(ValueError, match="only entities"):
            Reference({"id": 1})

    def test_of_identity_creates_stub(self) -> None:
        ref = Reference.of_identity(Publisher, id=7)
        assert ref.unwrap().id == 7
        assert isinstance(ref.unwrap(), Publisher)

    def test_equality_by_wrapped_entity(self, publisher) -> None:
        assert Reference(publisher) == Reference(publisher)
        assert Reference(publisher) != Reference(Publisher("Other", id=8))

    def test_wrap_reference_respects_descriptor(self, publisher, author) -> None:
        wrapped = wrap_reference(publisher, BOOK_META.properties["publisher"])
        assert is_reference(wrapped)
        plain = wrap_reference(author, BOOK_META.properties["author"])
        assert plain is author
        assert wrap_reference(None, BOOK_META.properties["publisher"]) is None


class TestCollection:
    """Тесты для Collection"""

    def test_add_remove_keeps_order(self, author) -> None:
        first, second = Book("A", id=1), Book("B", id=2)
        books = Collection(author)
        books.add(first, second, first)

        assert list(books) == [first, second]
        assert len(books) == 2
        assert books[1] is second

        books.remove(first)
        assert list(books) == [second]
        assert books.contains(first) is False

    def test_is_collection_with_kind(self, author) -> None:
        books = author.books
        prop = AUTHOR_META.properties["books"]
        assert is_collection(books) is True
        assert is_collection(books, prop, ReferenceKind.ONE_TO_MANY) is True
        assert is_collection(books, prop, ReferenceKind.MANY_TO_MANY) is False
        assert is_collection([1, 2]) is False


# =============================================================================
# METADATA MODELS
# =============================================================================


class TestEntityMetadata:
    """Тесты для Pydantic моделей метаданных"""

    def test_properties_keep_declaration_order(self) -> None:
        assert list(BOOK_META.properties) == [
            "id",
            "title",
            "author",
            "publisher",
            "price",
            "meta",
            "slug",
        ]

    def test_single_and_composite_keys(self) -> None:
        assert BOOK_META.primary_key == "id"
        assert BOOK_META.composite_pk is False
        composite = EntityMetadata(
            name="Pair",
            primary_keys=["a", "b"],
            properties=[PropertyDescriptor(name="a"), PropertyDescriptor(name="b")],
        )
        assert composite.composite_pk is True
        assert composite.primary_keys == ("a", "b")

    def test_serialized_key_defaults_to_primary_key(self) -> None:
        assert BOOK_META.serialized_key == "id"
        mongo = EntityMetadata(name="Doc", primary_keys=["_id"], serialized_primary_key="id")
        assert mongo.serialized_key == "id"

    def test_unknown_primary_key_rejected(self) -> None:
        with pytest.raises(ValidationError, match="not declared"):
            EntityMetadata(
                name="Broken",
                primary_keys=["uuid"],
                properties=[PropertyDescriptor(name="id")],
            )

    def test_empty_primary_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EntityMetadata(name="Broken", primary_keys=[])

    def test_duplicate_properties_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate property"):
            EntityMetadata(
                name="Broken",
                primary_keys=["id"],
                properties=[PropertyDescriptor(name="id"), PropertyDescriptor(name="id")],
            )

    def test_metadata_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            BOOK_META.name = "Other"

    def test_descriptor_flags(self) -> None:
        author_prop = BOOK_META.properties["author"]
        assert author_prop.is_relation is True
        assert author_prop.inverse == "books"
        assert author_prop.is_bidirectional_single is True
        assert BOOK_META.properties["publisher"].is_bidirectional_single is False
        assert BOOK_META.properties["title"].is_relation is False
        assert BOOK_META.properties["slug"].persist is False


# =============================================================================
# METADATA STORAGE
# =============================================================================


class TestMetadataStorage:
    """Тесты для MetadataStorage"""

    def test_lookup_by_name_class_and_instance(self, registry, author) -> None:
        assert registry.get("Author") is AUTHOR_META
        assert registry.get(Author) is AUTHOR_META
        assert registry.get(author) is AUTHOR_META
        assert registry.get(Edition).name == "BookEdition"

    def test_unknown_type_raises(self, registry) -> None:
        with pytest.raises(MetadataNotFoundError) as exc_info:
            registry.get("Magazine")

        assert exc_info.value.entity_type == "Magazine"
        assert isinstance(exc_info.value, KeyError)
        assert "Magazine" in str(exc_info.value)

    def test_find_and_has(self, registry) -> None:
        assert registry.find("Magazine") is None
        assert registry.has("Book") is True
        assert len(registry) == 6
        assert set(registry.all()) >= {"Author", "Book", "BookTag"}

    def test_register_binds_meta_to_class(self, registry, author) -> None:
        assert meta_of(author) is AUTHOR_META

    def test_register_binds_declared_class_by_tag(self) -> None:
        """Класс сущности находится по тегу типа и без явной передачи"""

        class Loose(Entity):
            pass

        storage = MetadataStorage()
        meta = EntityMetadata(name="Loose", primary_keys=["id"])
        storage.register(meta)

        assert storage.get(Loose()) is meta
        assert meta_of(Loose()) is meta

    def test_register_without_declared_class(self) -> None:
        storage = MetadataStorage()
        meta = storage.register(EntityMetadata(name="NeverDeclared", primary_keys=["id"]))
        assert storage.get("NeverDeclared") is meta


class TestFromDefinitions:
    """Тесты для MetadataStorage.from_definitions"""

    def test_build_registry_from_json(self) -> None:
        class Upper(CustomType):
            def convert_to_database_value(self, value, platform=None):
                return value.upper()

        storage = MetadataStorage.from_definitions(
            [
                {
                    "name": "Country",
                    "primary_keys": ["code"],
                    "properties": [
                        {"name": "code", "primary": True, "custom_type": "upper"},
                        {"name": "capital", "type": "City", "reference": "m:1"},
                    ],
                }
            ],
            custom_types={"upper": Upper()},
        )

        meta = storage.get("Country")
        assert meta.primary_key == "code"
        assert isinstance(meta.properties["code"].custom_type, Upper)
        assert meta.properties["capital"].reference == ReferenceKind.MANY_TO_ONE

    def test_invalid_definition_rejected_by_contract(self) -> None:
        with pytest.raises(SchemaValidationError):
            MetadataStorage.from_definitions(
                [{"name": "Country", "primary_keys": [], "properties": []}]
            )

    def test_unknown_reference_kind_rejected(self) -> None:
        with pytest.raises(SchemaValidationError):
            MetadataStorage.from_definitions(
                [
                    {
                        "name": "Country",
                        "primary_keys": ["code"],
                        "properties": [{"name": "code", "reference": "1:n"}],
                    }
                ]
            )

    def test_unknown_custom_type_name(self) -> None:
        with pytest.raises(KeyError):
            MetadataStorage.from_definitions(
                [
                    {
                        "name": "Country",
                        "primary_keys": ["code"],
                        "properties": [{"name": "code", "custom_type": "missing"}],
                    }
                ]
            )
