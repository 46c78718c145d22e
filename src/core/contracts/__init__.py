"""
Contract Validation Module

Модуль для валидации JSON контрактов: определения сущностей и наборы изменений.
"""

from .validators import (
    CHANGE_SET_SCHEMA,
    ENTITY_METADATA_SCHEMA,
    load_schema,
    validate_change_set,
    validate_entity_metadata,
)

__all__ = [
    "CHANGE_SET_SCHEMA",
    "ENTITY_METADATA_SCHEMA",
    "load_schema",
    "validate_entity_metadata",
    "validate_change_set",
]
