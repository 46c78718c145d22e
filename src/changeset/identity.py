"""
Primary Key Resolver — извлечение identity из данных или живой сущности

Identity — одиночное значение (str, число, ObjectId) или, для composite key,
детерминированная строка: значения ключевых полей в порядке объявления
в метаданных, соединённые разделителем ("1~x").

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Порядок сегментов задаётся metadata.primary_keys, а не порядком полей экземпляра
2. Ключевое поле-ссылка на сущность сворачивается в identity этой сущности (рекурсивно);
   её метаданные: привязанные к классу → registry по тегу → registry по типу свойства
3. None в ключевом поле → пустой сегмент (ключ ещё не назначен полностью)
4. Цикл в composite key через вложенные сущности → CompositeKeyCycleError
5. "Identity не определима" → None, а не exception
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from src.changeset.config import DEFAULT_CONFIG, ChangeSetConfig
from src.core.domain.entity import (
    UNSET,
    is_entity,
    is_object_id,
    meta_of,
    unwrap_reference,
)
from src.core.domain.metadata import EntityMetadata, MetadataStorage
from src.core.structural import is_number, is_string

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class CompositeKeyCycleError(Exception):
    """
    Composite key ссылается (прямо или транзитивно) сам на себя
    или превышает допустимую глубину вложенности.

    Признак неконсистентных метаданных хост-системы.
    """
    pass


# =============================================================================
# ACCESS HELPERS
# =============================================================================


def field_value(data: Any, name: str) -> Any:
    """Значение поля из Mapping или атрибута объекта (UNSET → None)."""
    if isinstance(data, Mapping):
        value = data.get(name)
    else:
        value = getattr(data, name, None)

    return None if value is UNSET else value


def resolve_meta(
    data: Any,
    meta: Optional[EntityMetadata] = None,
    registry: Optional[MetadataStorage] = None,
) -> Optional[EntityMetadata]:
    """Явные метаданные → привязанные к классу → из реестра по тегу типа."""
    if meta is not None:
        return meta

    if not is_entity(data):
        return None

    return meta_of(data) or (registry.find(data) if registry is not None else None)


def key_field_meta(
    value: Any,
    meta: EntityMetadata,
    pk: str,
    registry: Optional[MetadataStorage] = None,
) -> Optional[EntityMetadata]:
    """
    Метаданные сущности в ключевом поле pk.

    Привязанные к классу → из реестра по тегу → из реестра по типу свойства.
    С реестром незарегистрированный тип → MetadataNotFoundError.
    """
    target = unwrap_reference(value)
    found = resolve_meta(target, None, registry)

    if found is None and registry is not None:
        prop = meta.properties.get(pk)
        found = registry.get(prop.type if prop is not None and prop.type else target)

    return found


# =============================================================================
# PRIMARY KEY SHAPE
# =============================================================================


def is_primary_key(key: Any) -> bool:
    """
    Похоже ли значение на первичный ключ: строка, число или ObjectId.

    Examples:
        >>> is_primary_key("abc"), is_primary_key(42), is_primary_key(True)
        (True, True, False)
        >>> is_primary_key({"id": 1})
        False
    """
    return is_string(key) or is_number(key) or is_object_id(key)


# =============================================================================
# IDENTITY EXTRACTION
# =============================================================================


def extract_pk(
    data: Any,
    meta: Optional[EntityMetadata] = None,
    registry: Optional[MetadataStorage] = None,
    config: Optional[ChangeSetConfig] = None,
) -> Any:
    """
    Извлечь identity из данных. Принимает dict, сущность, Reference или сам ключ.

    Args:
        data: Сырые данные, сущность, Reference или значение ключа
        meta: Метаданные (если не заданы — берутся у сущности)
        registry: Реестр для поиска метаданных вложенных сущностей
        config: Конфигурация (разделитель composite key)

    Returns:
        Identity или None, если определить её невозможно
    """
    if is_primary_key(data):
        return data

    data = unwrap_reference(data)
    meta = resolve_meta(data, meta, registry)

    if meta is None or not (isinstance(data, Mapping) or is_entity(data)):
        return None

    if meta.composite_pk:
        return get_composite_key_hash(data, meta, registry, config)

    value = field_value(data, meta.primary_key)
    if value is None:
        value = field_value(data, meta.serialized_key)

    return value


def get_serialized_primary_key(
    entity: Any,
    meta: Optional[EntityMetadata] = None,
    registry: Optional[MetadataStorage] = None,
    config: Optional[ChangeSetConfig] = None,
    _path: Tuple[int, ...] = (),
) -> Optional[str]:
    """
    Сериализованная identity сущности — сегмент composite key.

    Для composite key самой сущности — её собственный composite hash.
    """
    entity = unwrap_reference(entity)
    meta = resolve_meta(entity, meta, registry)

    if meta is None:
        return None

    if meta.composite_pk:
        return get_composite_key_hash(entity, meta, registry, config, _path)

    value = field_value(entity, meta.serialized_key)
    if value is None:
        value = field_value(entity, meta.primary_key)

    return None if value is None else str(value)


def get_composite_key_hash(
    entity: Any,
    meta: EntityMetadata,
    registry: Optional[MetadataStorage] = None,
    config: Optional[ChangeSetConfig] = None,
    _path: Tuple[int, ...] = (),
) -> str:
    """
    Composite identity: сегменты в порядке meta.primary_keys через разделитель.

    Args:
        entity: Сущность или dict с ключевыми полями
        meta: Метаданные сущности
        registry: Реестр для метаданных вложенных сущностей
        config: Конфигурация (разделитель, предел глубины)

    Returns:
        Строка вида "1~x"

    Raises:
        CompositeKeyCycleError: Цикл или превышение глубины вложенности
        MetadataNotFoundError: Тип вложенной сущности не найден в registry
    """
    config = config or DEFAULT_CONFIG

    if id(entity) in _path or len(_path) >= config.max_identity_depth:
        logger.warning(
            "Composite key cycle detected for %s (depth=%d)", meta.name, len(_path)
        )
        raise CompositeKeyCycleError(
            f"Composite key of '{meta.name}' is cyclic or nested deeper than "
            f"{config.max_identity_depth} levels"
        )

    path = _path + (id(entity),)
    segments = []

    for pk in meta.primary_keys:
        value = field_value(entity, pk)

        if is_entity(value, allow_reference=True):
            nested_meta = key_field_meta(value, meta, pk, registry)
            value = get_serialized_primary_key(value, nested_meta, registry, config, path)

        segments.append("" if value is None else str(value))

    return config.composite_key_separator.join(segments)


def has_primary_key(
    entity: Any,
    meta: Optional[EntityMetadata] = None,
    registry: Optional[MetadataStorage] = None,
    config: Optional[ChangeSetConfig] = None,
    _path: Tuple[int, ...] = (),
) -> bool:
    """
    Назначена ли identity сущности полностью.

    Каждое ключевое поле должно быть truthy; ключевое поле-ссылка
    требует назначенной identity у вложенной сущности.
    Без метаданных → False.
    """
    config = config or DEFAULT_CONFIG
    entity = unwrap_reference(entity)
    meta = resolve_meta(entity, meta, registry)

    if meta is None:
        return False

    if id(entity) in _path or len(_path) >= config.max_identity_depth:
        raise CompositeKeyCycleError(
            f"Primary key of '{meta.name}' is cyclic or nested deeper than "
            f"{config.max_identity_depth} levels"
        )

    path = _path + (id(entity),)

    for pk in meta.primary_keys:
        value = field_value(entity, pk)
        if not value:
            return False
        if is_entity(value, allow_reference=True) and not has_primary_key(
            value, key_field_meta(value, meta, pk, registry), registry, config, path
        ):
            return False

    return True
