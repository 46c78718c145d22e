"""
CustomType — пользовательский scalar codec свойства

Конверсия между in-memory представлением и представлением хранилища.
Конкретные реализации принадлежат платформе хранилища; здесь только контракт.
"""

from typing import Any


class CustomType:
    """
    Базовый codec. По умолчанию обе конверсии — identity.

    platform — непрозрачный объект платформы хранилища, передаётся как есть.
    """

    def convert_to_database_value(self, value: Any, platform: Any = None) -> Any:
        return value

    def convert_to_python_value(self, value: Any, platform: Any = None) -> Any:
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
