"""Конфигурация change detection ядра."""

from dataclasses import dataclass
from typing import Final

# Разделитель сегментов composite identity ("1~x")
COMPOSITE_KEY_SEPARATOR: Final[str] = "~"

# Максимальная глубина рекурсии composite key через вложенные сущности
MAX_IDENTITY_DEPTH: Final[int] = 16


@dataclass(frozen=True)
class ChangeSetConfig:
    """Конфигурация нормализации и diff.

    - composite_key_separator: разделитель сегментов composite identity
    - max_identity_depth: предел вложенности composite key (защита от циклов в метаданных)
    - clone_nested_values: deep clone list/dict значений при снятии snapshot
    """
    composite_key_separator: str = COMPOSITE_KEY_SEPARATOR
    max_identity_depth: int = MAX_IDENTITY_DEPTH
    clone_nested_values: bool = True

    def __post_init__(self):
        if not self.composite_key_separator:
            raise ValueError("composite_key_separator must be non-empty")
        if self.max_identity_depth < 1:
            raise ValueError(f"max_identity_depth must be positive, got {self.max_identity_depth}")


DEFAULT_CONFIG: Final[ChangeSetConfig] = ChangeSetConfig()
