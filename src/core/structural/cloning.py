"""
Deep Clone — независимая глубокая копия графа значений

Используется при копировании list/dict значений в snapshot, чтобы последующая
мутация живого объекта не меняла уже снятый snapshot.
"""

import copy
from typing import Any, TypeVar

T = TypeVar("T")


def clone(value: T) -> T:
    """
    Глубокая копия значения.

    Мутация результата никогда не затрагивает исходное значение.
    Общие ссылки внутри графа и циклы сохраняются (memo copy.deepcopy).

    Args:
        value: Любое значение (скаляр, list, dict, вложенные структуры)

    Returns:
        Новый независимый граф с той же структурой и листовыми значениями
    """
    return copy.deepcopy(value)
