"""
Entity Normalizer — живая сущность → плоский immutable Snapshot

Snapshot содержит только сравнимые значения: скаляры, вложенные структуры
(deep clone) и identity связанных сущностей.

Поле исключается из snapshot, если:
1. Поля нет на экземпляре
2. Значение — Collection (1:m / m:n сохраняются отдельно, не через diff полей)
3. Ключевое поле без значения (новая, ещё не сохранённая сущность)
4. Ссылка на сущность без назначенной identity (несохранённая связь)
5. Inverse (не владеющая) сторона 1:1 связи
6. Двунаправленная 1:1 / m:1 связь в состоянии UNSET (явный None сохраняется)
7. persist=False (вычисляемое/виртуальное поле)

Оставшиеся поля кодируются:
- ссылка на сущность → identity (одиночная или composite)
- custom_type → convert_to_database_value
- list/tuple/set/dict → deep clone
- иначе → значение как есть

Нормализация Snapshot — identity функция (идемпотентность по типу).
"""

import logging
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional

from src.changeset.config import DEFAULT_CONFIG, ChangeSetConfig
from src.changeset.identity import extract_pk, has_primary_key
from src.core.domain.entity import (
    UNSET,
    entity_type_of,
    is_collection,
    is_entity,
    meta_of,
    unwrap_reference,
)
from src.core.domain.metadata import (
    EntityMetadata,
    MetadataStorage,
    PropertyDescriptor,
    ReferenceKind,
)
from src.core.structural import clone

logger = logging.getLogger(__name__)

_NESTED_TYPES = (list, tuple, set, Mapping)


# =============================================================================
# SNAPSHOT
# =============================================================================


class Snapshot(Mapping):
    """
    Immutable плоский snapshot сущности.

    Маркер __prepared__ — атрибут класса, он не входит в набор полей
    и не участвует в сравнении.
    """

    __slots__ = ("_fields", "_entity_type")
    __prepared__ = True

    def __init__(self, fields: Mapping, entity_type: Optional[str] = None):
        object.__setattr__(self, "_fields", MappingProxyType(dict(fields)))
        object.__setattr__(self, "_entity_type", entity_type)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Snapshot is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Snapshot is immutable")

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __reduce__(self):
        return (Snapshot, (dict(self._fields), self._entity_type))

    def __repr__(self) -> str:
        return f"Snapshot<{self._entity_type}>({dict(self._fields)!r})"

    @property
    def entity_type(self) -> Optional[str]:
        return self._entity_type

    def to_dict(self) -> Dict[str, Any]:
        """Независимая изменяемая копия полей."""
        return clone(dict(self._fields))


def is_prepared(value: Any) -> bool:
    """Snapshot или mapping, помеченный __prepared__."""
    return getattr(value, "__prepared__", False) is True


# =============================================================================
# DROP REASONS
# =============================================================================


class DropReason(str, Enum):
    """Причина исключения поля из snapshot."""

    MISSING = "missing"
    COLLECTION = "collection"
    NO_PRIMARY_KEY = "no_primary_key"
    UNSAVED_REFERENCE = "unsaved_reference"
    INVERSE_SIDE = "inverse_side"
    UNSET_RELATION = "unset_relation"
    NOT_PERSISTED = "not_persisted"


def _has_field(entity: Any, name: str) -> bool:
    """Собственное поле экземпляра (или property-поле класса)."""
    if isinstance(entity, Mapping):
        return name in entity

    own = getattr(entity, "__dict__", None)
    if own is not None and name in own:
        return True

    cls = type(entity)
    if isinstance(getattr(cls, name, None), property):
        return True

    return name in getattr(cls, "__slots__", ()) and hasattr(entity, name)


def _get_field(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity[name]

    return getattr(entity, name, UNSET)


# =============================================================================
# NORMALIZER
# =============================================================================


class EntityNormalizer:
    """
    Конвертер живой сущности в Snapshot.

    Stateless относительно сущностей: snapshot создаётся заново при каждом вызове.
    """

    def __init__(
        self,
        metadata: MetadataStorage,
        platform: Any = None,
        config: Optional[ChangeSetConfig] = None,
    ):
        """
        Args:
            metadata: реестр метаданных (только чтение)
            platform: платформа хранилища, передаётся в custom codecs
            config: конфигурация change detection
        """
        self.metadata = metadata
        self.platform = platform
        self.config = config or DEFAULT_CONFIG

    def prepare(self, entity: Any) -> Snapshot:
        """
        Снять snapshot сущности.

        Args:
            entity: Живая сущность (или уже готовый snapshot)

        Returns:
            Snapshot (тот же объект, если entity уже нормализован)

        Raises:
            MetadataNotFoundError: тип сущности или связанной сущности не зарегистрирован
        """
        if is_prepared(entity):
            return entity

        meta = self.metadata.get(entity_type_of(entity))
        fields: Dict[str, Any] = {}

        for prop in meta.properties.values():
            reason = self.drop_reason(entity, prop)
            if reason is not None:
                logger.debug("%s.%s dropped from snapshot: %s", meta.name, prop.name, reason.value)
                continue

            fields[prop.name] = self._encode(_get_field(entity, prop.name), prop)

        return Snapshot(fields, entity_type=meta.name)

    def dropped_fields(self, entity: Any) -> Dict[str, DropReason]:
        """Диагностика: какие поля исключены из snapshot и почему."""
        meta = self.metadata.get(entity_type_of(entity))
        dropped = {}

        for prop in meta.properties.values():
            reason = self.drop_reason(entity, prop)
            if reason is not None:
                dropped[prop.name] = reason

        return dropped

    def drop_reason(self, entity: Any, prop: PropertyDescriptor) -> Optional[DropReason]:
        """Причина исключения поля или None, если поле попадает в snapshot."""
        if not _has_field(entity, prop.name):
            return DropReason.MISSING

        value = _get_field(entity, prop.name)

        if is_collection(value):
            return DropReason.COLLECTION

        if prop.primary and not value:
            return DropReason.NO_PRIMARY_KEY

        if is_entity(value, allow_reference=True) and not has_primary_key(
            value, self._target_meta(value, prop), self.metadata, self.config
        ):
            return DropReason.UNSAVED_REFERENCE

        if prop.reference == ReferenceKind.ONE_TO_ONE and not prop.owner:
            return DropReason.INVERSE_SIDE

        # двунаправленные 1:1 и m:1: UNSET отбрасывается, явный None остаётся
        if prop.is_bidirectional_single and value is UNSET:
            return DropReason.UNSET_RELATION

        if prop.persist is False:
            return DropReason.NOT_PERSISTED

        return None

    def _target_meta(self, value: Any, prop: PropertyDescriptor) -> EntityMetadata:
        """
        Метаданные сущности, на которую ссылается поле.

        Raises:
            MetadataNotFoundError: целевой тип не зарегистрирован
        """
        target = unwrap_reference(value)
        meta = meta_of(target) or self.metadata.find(target)

        if meta is None:
            meta = self.metadata.get(prop.type or target)

        return meta

    def _encode(self, value: Any, prop: PropertyDescriptor) -> Any:
        if is_entity(value, allow_reference=True):
            return extract_pk(
                unwrap_reference(value), self._target_meta(value, prop), self.metadata, self.config
            )

        if prop.custom_type is not None:
            return prop.custom_type.convert_to_database_value(value, self.platform)

        if isinstance(value, _NESTED_TYPES) and self.config.clone_nested_values:
            return clone(value)

        return value


def prepare_entity(
    entity: Any,
    metadata: MetadataStorage,
    platform: Any = None,
    config: Optional[ChangeSetConfig] = None,
) -> Snapshot:
    """Снять snapshot сущности (см. EntityNormalizer.prepare)."""
    return EntityNormalizer(metadata, platform, config).prepare(entity)
