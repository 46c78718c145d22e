"""
Entity Metadata — дескрипторы формы сущностей и реестр метаданных

Immutable Pydantic модели, описывающие сущности:
- PropertyDescriptor: вид связи, owner/inverse, persist, primary, custom codec
- EntityMetadata: ключевые поля (одно или несколько, упорядочены) и свойства

MetadataStorage — реестр, создаётся один раз при старте хост-системы.
Ядро change detection использует его только на чтение.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.domain.entity import entity_class_for, entity_type_of
from src.core.domain.types import CustomType

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class ReferenceKind(str, Enum):
    """Вид связи свойства (SCALAR — не связь)."""

    SCALAR = "scalar"
    ONE_TO_ONE = "1:1"
    MANY_TO_ONE = "m:1"
    ONE_TO_MANY = "1:m"
    MANY_TO_MANY = "m:n"


# =============================================================================
# EXCEPTIONS
# =============================================================================


class MetadataNotFoundError(KeyError):
    """Тип сущности не зарегистрирован в реестре метаданных."""

    def __init__(self, entity_type: str):
        super().__init__(entity_type)
        self.entity_type = entity_type

    def __str__(self) -> str:
        return f"Metadata for entity '{self.entity_type}' not found"


# =============================================================================
# PROPERTY DESCRIPTOR
# =============================================================================


class PropertyDescriptor(BaseModel):
    """
    Дескриптор одного свойства сущности.

    Immutable модель (frozen=True). Для связей type — имя целевой сущности.
    """

    name: str = Field(..., min_length=1, description="Имя свойства")
    type: str = Field("", description="Имя целевой сущности (для связей) или scalar типа")
    reference: ReferenceKind = Field(ReferenceKind.SCALAR, description="Вид связи")

    # Флаги
    primary: bool = Field(False, description="Часть первичного ключа")
    owner: bool = Field(False, description="Владеющая сторона (хранит foreign key)")
    persist: bool = Field(True, description="False → вычисляемое/виртуальное свойство")
    wrapped_reference: bool = Field(False, description="Связь хранится в Reference-обёртке")

    # Двунаправленные связи
    inversed_by: Optional[str] = Field(None, description="Имя обратного свойства (owning side)")
    mapped_by: Optional[str] = Field(None, description="Имя владеющего свойства (inverse side)")

    custom_type: Optional[CustomType] = Field(None, description="Пользовательский scalar codec")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def inverse(self) -> Optional[str]:
        """Имя связанного свойства на другой стороне (если связь двунаправленная)."""
        return self.inversed_by or self.mapped_by

    @property
    def is_relation(self) -> bool:
        return self.reference != ReferenceKind.SCALAR

    @property
    def is_bidirectional_single(self) -> bool:
        """1:1 или m:1 с обратной связью (поле объявлено через setter-wiring)."""
        single = self.reference in (ReferenceKind.ONE_TO_ONE, ReferenceKind.MANY_TO_ONE)
        return single and self.inverse is not None


# =============================================================================
# ENTITY METADATA
# =============================================================================


class EntityMetadata(BaseModel):
    """
    Метаданные одного типа сущности.

    properties хранит дескрипторы в порядке объявления.
    Принимает как dict {name: descriptor}, так и список дескрипторов.
    """

    name: str = Field(..., min_length=1, description="Тег типа сущности")
    primary_keys: Tuple[str, ...] = Field(..., min_length=1, description="Ключевые поля (упорядочены)")
    serialized_primary_key: Optional[str] = Field(
        None, description="Поле сериализованной формы ключа (по умолчанию primary_key)"
    )
    properties: Dict[str, PropertyDescriptor] = Field(default_factory=dict)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("properties", mode="before")
    @classmethod
    def index_properties(cls, v: Any) -> Any:
        """Список дескрипторов → dict по имени с сохранением порядка."""
        if isinstance(v, (list, tuple)):
            indexed: Dict[str, Any] = {}
            for prop in v:
                name = prop["name"] if isinstance(prop, Mapping) else prop.name
                if name in indexed:
                    raise ValueError(f"Duplicate property '{name}'")
                indexed[name] = prop
            return indexed
        return v

    @model_validator(mode="after")
    def validate_primary_keys(self) -> "EntityMetadata":
        for name, prop in self.properties.items():
            if name != prop.name:
                raise ValueError(f"Property key '{name}' does not match descriptor name '{prop.name}'")

        if self.properties:
            missing = [pk for pk in self.primary_keys if pk not in self.properties]
            if missing:
                raise ValueError(f"Primary keys {missing} are not declared properties of '{self.name}'")

        if len(set(self.primary_keys)) != len(self.primary_keys):
            raise ValueError(f"Duplicate primary key fields in '{self.name}'")

        return self

    @property
    def primary_key(self) -> str:
        return self.primary_keys[0]

    @property
    def composite_pk(self) -> bool:
        return len(self.primary_keys) > 1

    @property
    def serialized_key(self) -> str:
        return self.serialized_primary_key or self.primary_key


# =============================================================================
# METADATA STORAGE
# =============================================================================


class MetadataStorage:
    """
    Реестр метаданных сущностей.

    Lookup по тегу типа; неизвестный тип → MetadataNotFoundError.
    При регистрации метаданные привязываются к классу сущности (__meta__):
    явно переданному или объявленному подклассу Entity с тем же тегом.
    Это позволяет извлекать ключ без явных метаданных.
    """

    def __init__(self, metadata: Optional[Iterable[EntityMetadata]] = None):
        self._metadata: Dict[str, EntityMetadata] = {}
        for meta in metadata or []:
            self.register(meta)

    def register(self, meta: EntityMetadata, entity_class: Optional[type] = None) -> EntityMetadata:
        """
        Регистрация метаданных.

        Args:
            meta: Метаданные сущности
            entity_class: Класс сущности (получает __meta__); по умолчанию
                объявленный подкласс Entity с тегом meta.name

        Returns:
            Зарегистрированные метаданные
        """
        self._metadata[meta.name] = meta

        entity_class = entity_class or entity_class_for(meta.name)
        if entity_class is not None:
            entity_class.__meta__ = meta

        logger.debug(
            "Registered metadata for %s (pk=%s, %d properties, class bound: %s)",
            meta.name,
            "~".join(meta.primary_keys),
            len(meta.properties),
            entity_class is not None,
        )
        return meta

    def get(self, entity: Union[str, type, Any]) -> EntityMetadata:
        """
        Метаданные по тегу типа, классу или экземпляру сущности.

        Raises:
            MetadataNotFoundError: Если тип не зарегистрирован
        """
        name = self._resolve_name(entity)
        if name not in self._metadata:
            raise MetadataNotFoundError(name)

        return self._metadata[name]

    def find(self, entity: Union[str, type, Any]) -> Optional[EntityMetadata]:
        return self._metadata.get(self._resolve_name(entity))

    def has(self, entity: Union[str, type, Any]) -> bool:
        return self._resolve_name(entity) in self._metadata

    def all(self) -> Dict[str, EntityMetadata]:
        return dict(self._metadata)

    def __len__(self) -> int:
        return len(self._metadata)

    @staticmethod
    def _resolve_name(entity: Union[str, type, Any]) -> str:
        if isinstance(entity, str):
            return entity
        if isinstance(entity, type):
            return getattr(entity, "__entity_type__", entity.__name__)
        return entity_type_of(entity)

    @classmethod
    def from_definitions(
        cls,
        definitions: List[Dict[str, Any]],
        custom_types: Optional[Dict[str, CustomType]] = None,
        entity_classes: Optional[Dict[str, type]] = None,
    ) -> "MetadataStorage":
        """
        Построение реестра из декларативных (JSON) определений.

        Каждое определение проверяется контрактом entity_metadata.
        custom_type в определении свойства — имя из custom_types.
        entity_classes — явная привязка тега типа к классу сущности
        (иначе привязывается объявленный подкласс Entity с тем же тегом).

        Raises:
            jsonschema.ValidationError: Определение не соответствует контракту
            KeyError: custom_type не найден в custom_types
        """
        from src.core.contracts import validate_entity_metadata

        custom_types = custom_types or {}
        entity_classes = entity_classes or {}
        storage = cls()

        for definition in definitions:
            validate_entity_metadata(definition)

            properties = []
            for prop in definition.get("properties", []):
                prop = dict(prop)
                if "custom_type" in prop:
                    prop["custom_type"] = custom_types[prop["custom_type"]]
                properties.append(PropertyDescriptor(**prop))

            storage.register(
                EntityMetadata(
                    name=definition["name"],
                    primary_keys=tuple(definition["primary_keys"]),
                    serialized_primary_key=definition.get("serialized_primary_key"),
                    properties=properties,
                ),
                entity_classes.get(definition["name"]),
            )

        return storage
