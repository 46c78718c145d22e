"""
Value Helpers — общие предикаты и утилиты над значениями

Мелкие чистые функции, которые используются нормализатором и хост-системой:
проверки типов, нормализация в список, переименование ключей с сохранением
порядка, поиск дубликатов, значения enum, md5-хеш.
"""

import hashlib
from collections.abc import Mapping, MutableMapping
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple, Type, TypeVar, Union

T = TypeVar("T")


# =============================================================================
# ПРОВЕРКИ ТИПОВ
# =============================================================================


def is_object(value: Any, not_: Tuple[type, ...] = ()) -> bool:
    """
    Является ли значение вложенной структурой (Mapping).

    Args:
        value: Проверяемое значение
        not_: Классы, которые не считаются структурой даже если являются Mapping

    Returns:
        True для непустого по типу Mapping, False для списков и скаляров
    """
    return isinstance(value, Mapping) and not isinstance(value, not_)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    """int/float, но не bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_empty(value: Any) -> bool:
    """
    Пустое ли значение: список без элементов, Mapping без ключей или falsy.

    Examples:
        >>> is_empty([]), is_empty({}), is_empty(0), is_empty({"a": 1})
        (True, True, True, False)
    """
    if isinstance(value, (list, tuple)):
        return len(value) == 0

    if isinstance(value, Mapping):
        return len(value) == 0

    return not value


def object_type(value: Any) -> str:
    """Имя типа значения в нижнем регистре ('dict', 'list', 'datetime', ...)."""
    return type(value).__name__.lower()


def class_name(class_or_name: Union[str, type]) -> str:
    if isinstance(class_or_name, str):
        return class_or_name

    return class_or_name.__name__


# =============================================================================
# КОЛЛЕКЦИИ
# =============================================================================


def as_array(data: Optional[Union[T, List[T]]] = None) -> List[T]:
    """
    Нормализовать аргумент в список.

    None → [], список → тот же список, иначе → [data].
    """
    if data is None:
        return []

    return data if isinstance(data, list) else [data]


def unique(items: Iterable[T]) -> List[T]:
    """Список без дубликатов с сохранением порядка первого вхождения."""
    return list(dict.fromkeys(items))


def find_duplicates(items: Iterable[T]) -> List[T]:
    """Значения, встречающиеся более одного раза (в порядке первого повтора)."""
    seen: List[T] = []
    duplicates: List[T] = []

    for item in items:
        if item in seen:
            if item not in duplicates:
                duplicates.append(item)
        else:
            seen.append(item)

    return duplicates


def rename_key(payload: Any, from_key: str, to_key: str) -> None:
    """
    Переименовать ключ dict на месте, сохраняя порядок ключей.

    No-op если payload не Mapping, from_key отсутствует или to_key уже существует.
    """
    if not isinstance(payload, MutableMapping):
        return

    if from_key not in payload or to_key in payload:
        return

    items = list(payload.items())
    payload.clear()

    for key, value in items:
        payload[to_key if key == from_key else key] = value


def default_value(payload: MutableMapping, option: str, value: Any) -> None:
    """Установить payload[option] = value, только если ключ отсутствует."""
    if option not in payload:
        payload[option] = value


def extract_enum_values(enum_cls: Type[Enum]) -> List[Any]:
    """Все значения enum (строковые или числовые) в порядке объявления."""
    return [member.value for member in enum_cls]


# =============================================================================
# ХЕШИРОВАНИЕ
# =============================================================================


def hash_text(data: str) -> str:
    """md5 hex digest строки (не для криптографии, только для ключей кэша)."""
    return hashlib.md5(data.encode("utf-8")).hexdigest()
