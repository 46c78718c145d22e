"""
Structural primitives — глубокое сравнение, копирование и слияние

Листовые модули без зависимостей от метаданных сущностей.
"""

from src.core.structural.cloning import clone
from src.core.structural.equality import equals
from src.core.structural.merging import merge
from src.core.structural.predicates import (
    as_array,
    class_name,
    default_value,
    extract_enum_values,
    find_duplicates,
    hash_text,
    is_empty,
    is_number,
    is_object,
    is_string,
    object_type,
    rename_key,
    unique,
)

__all__ = [
    # Deep primitives
    "equals",
    "clone",
    "merge",
    # Type checks
    "is_object",
    "is_string",
    "is_number",
    "is_empty",
    "object_type",
    "class_name",
    # Collections
    "as_array",
    "unique",
    "find_duplicates",
    "rename_key",
    "default_value",
    "extract_enum_values",
    # Hashing
    "hash_text",
]
