"""
Entity — маркеры доменных объектов, Reference-обёртки и коллекции

Доменный объект распознаётся по capability-маркеру (__entity__), а не по
точному типу. Тип сущности для поиска метаданных задаётся явным тегом
__entity_type__ (по умолчанию имя класса), который задаётся при объявлении:

    class Book(Entity, entity_type="Book"):
        ...

Значения полей доменного объекта могут быть:
- скалярами и вложенными структурами (dict/list)
- прямыми ссылками на другие сущности
- Reference-обёртками (lazy reference)
- Collection (1:m / m:n), которые никогда не участвуют в diff
- UNSET — отдельное состояние "не инициализировано" (отличается от None)
"""

import weakref
from typing import Any, Generic, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


# =============================================================================
# UNSET SENTINEL
# =============================================================================


class _Unset:
    """Состояние 'значение ещё не присвоено' (в отличие от явного None)."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"

    def __copy__(self) -> "_Unset":
        return self

    def __deepcopy__(self, memo: dict) -> "_Unset":
        return self


UNSET: Any = _Unset()


def is_unset(value: Any) -> bool:
    return value is UNSET


# =============================================================================
# ENTITY MARKER
# =============================================================================


_ENTITY_CLASSES: "weakref.WeakValueDictionary[str, type]" = weakref.WeakValueDictionary()


class Entity:
    """
    Базовый маркер доменного объекта.

    Подклассы получают тег типа __entity_type__ для поиска метаданных
    и попадают в индекс классов по этому тегу (последнее объявление побеждает).
    Поля хранятся как обычные атрибуты экземпляра.
    """

    __entity__ = True
    __entity_type__ = "Entity"

    def __init_subclass__(cls, entity_type: Optional[str] = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__entity_type__ = entity_type or cls.__name__
        _ENTITY_CLASSES[cls.__entity_type__] = cls


def entity_class_for(entity_type: str) -> Optional[type]:
    """Объявленный класс сущности по тегу типа (или None)."""
    return _ENTITY_CLASSES.get(entity_type)


def entity_type_of(entity: Any) -> str:
    """Тег типа сущности (явный __entity_type__ или имя класса)."""
    cls = type(entity)
    return getattr(cls, "__entity_type__", cls.__name__)


def meta_of(entity: Any) -> Any:
    """Метаданные, привязанные к классу сущности при регистрации (или None)."""
    return getattr(type(entity), "__meta__", None)


def is_entity(data: Any, allow_reference: bool = False) -> bool:
    """
    Является ли значение экземпляром сущности.

    Args:
        data: Проверяемое значение
        allow_reference: Считать Reference-обёртку сущностью

    Returns:
        True если значение несёт маркер __entity__ (классы не считаются)
    """
    if allow_reference and is_reference(data):
        return True

    if data is None or isinstance(data, type):
        return False

    return getattr(data, "__entity__", False) is True


def is_object_id(key: Any) -> bool:
    """ObjectId-подобный идентификатор внешнего драйвера (по имени класса)."""
    if key is None or isinstance(key, (str, bytes, int, float, list, tuple, dict)):
        return False

    return type(key).__name__.lower() == "objectid"


# =============================================================================
# REFERENCE
# =============================================================================


class Reference(Generic[T]):
    """
    Обёртка вокруг сущности для lazy relation полей (wrapped_reference).

    Может содержать полностью загруженную сущность или только её
    идентификатор (stub-экземпляр с заполненными ключевыми полями).
    """

    __slots__ = ("_entity",)

    def __init__(self, entity: T):
        if not is_entity(entity):
            raise ValueError(f"Reference can wrap only entities, got {type(entity).__name__}")
        self._entity = entity

    @classmethod
    def create(cls, entity: Any) -> "Reference":
        if isinstance(entity, Reference):
            return entity
        return cls(entity)

    @classmethod
    def of_identity(cls, entity_cls: type, **primary_key_values: Any) -> "Reference":
        """Reference на не загруженную сущность, известную только по ключу."""
        stub = entity_cls.__new__(entity_cls)
        for name, value in primary_key_values.items():
            setattr(stub, name, value)
        return cls(stub)

    def unwrap(self) -> T:
        return self._entity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reference):
            return NotImplemented
        return self._entity is other._entity

    def __hash__(self) -> int:
        return id(self._entity)

    def __repr__(self) -> str:
        return f"Reference<{entity_type_of(self._entity)}>"


def is_reference(data: Any) -> bool:
    return isinstance(data, Reference)


def unwrap_reference(ref: Any) -> Any:
    """Сущность внутри Reference или само значение."""
    return ref.unwrap() if isinstance(ref, Reference) else ref


def wrap_reference(entity: Any, prop: Any) -> Any:
    """Обернуть сущность в Reference, если свойство объявлено как wrapped_reference."""
    if entity and getattr(prop, "wrapped_reference", False) and not is_reference(entity):
        return Reference.create(entity)

    return entity


# =============================================================================
# COLLECTION
# =============================================================================


class Collection(Generic[T]):
    """
    Упорядоченная коллекция связанных сущностей (1:m / m:n).

    Коллекции сохраняются через join/foreign-key операции и никогда
    не попадают в snapshot.
    """

    def __init__(self, owner: Any, items: Optional[Iterable[T]] = None):
        self.owner = owner
        self._items: List[T] = list(items or [])

    def add(self, *items: T) -> None:
        for item in items:
            if item not in self._items:
                self._items.append(item)

    def remove(self, *items: T) -> None:
        for item in items:
            if item in self._items:
                self._items.remove(item)

    def contains(self, item: T) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __repr__(self) -> str:
        return f"Collection<{len(self._items)} items>"


def is_collection(item: Any, prop: Any = None, kind: Any = None) -> bool:
    """
    Является ли значение коллекцией (опционально — заданного вида связи).

    Args:
        item: Проверяемое значение
        prop: PropertyDescriptor свойства
        kind: Ожидаемый ReferenceKind (проверяется только вместе с prop)
    """
    if not isinstance(item, Collection):
        return False

    return not (prop is not None and kind is not None) or prop.reference == kind
