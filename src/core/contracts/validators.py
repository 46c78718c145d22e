"""
JSON Schema контракты change detection

Схемы лежат в contracts/schema/ в корне проекта:
- entity_metadata.json — декларативное определение сущности
  (вход MetadataStorage.from_definitions)
- change_set.json — сериализованный набор изменений (выход ChangeSet.to_dict)

Схема проверяется на соответствие Draft 2020-12 при первой загрузке,
загруженные схемы и валидаторы кэшируются на процесс.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Final

from jsonschema import Draft202012Validator

SCHEMA_DIR: Final[Path] = Path(__file__).resolve().parents[3] / "contracts" / "schema"

ENTITY_METADATA_SCHEMA: Final[str] = "entity_metadata"
CHANGE_SET_SCHEMA: Final[str] = "change_set"


@lru_cache(maxsize=None)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """
    Загрузка схемы по имени без расширения.

    Raises:
        FileNotFoundError: Файл схемы не найден
        jsonschema.SchemaError: Файл не является валидной JSON Schema
    """
    schema_path = SCHEMA_DIR / f"{schema_name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return schema


@lru_cache(maxsize=None)
def _validator(schema_name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema(schema_name))


def validate_entity_metadata(data: Dict[str, Any]) -> None:
    """
    Проверка декларативного определения сущности.

    Raises:
        jsonschema.ValidationError: Определение не соответствует контракту
    """
    _validator(ENTITY_METADATA_SCHEMA).validate(data)


def validate_change_set(data: Dict[str, Any]) -> None:
    """
    Проверка сериализованного набора изменений.

    Raises:
        jsonschema.ValidationError: Набор изменений не соответствует контракту
    """
    _validator(CHANGE_SET_SCHEMA).validate(data)
