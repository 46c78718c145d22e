"""
Deep Equality — структурное сравнение вложенных значений

Сравнение по значению, а не по ссылке:
- Скаляры сравниваются через == (bool и число никогда не равны)
- Списки/кортежи: одинаковый тип, длина и попарное равенство (порядок важен)
- Mapping: одинаковый набор ключей и попарное равенство значений (порядок ключей не важен)
- Бинарные данные (bytes/bytearray/memoryview): по содержимому
- Объекты одного класса с __dict__: по собственным атрибутам

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. equals(x, x) всегда True (включая NaN)
2. equals(a, b) == equals(b, a)
3. Нет побочных эффектов

Циклические структуры не поддерживаются: snapshots не содержат циклов по построению.
"""

import math
from collections.abc import Mapping
from typing import Any

_BINARY_TYPES = (bytes, bytearray, memoryview)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def equals(a: Any, b: Any) -> bool:
    """
    Глубокое (структурное) сравнение двух значений.

    Args:
        a: Первое значение
        b: Второе значение

    Returns:
        True если значения структурно равны

    Examples:
        >>> equals({"a": [1, 2]}, {"a": [1, 2]})
        True
        >>> equals([1, 2], [2, 1])
        False
        >>> equals(float("nan"), float("nan"))
        True
    """
    if a is b:
        return True

    if isinstance(a, _BINARY_TYPES) and isinstance(b, _BINARY_TYPES):
        return bytes(a) == bytes(b)

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key in a:
            if key not in b:
                return False
            if not equals(a[key], b[key]):
                return False
        return True

    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(equals(x, y) for x, y in zip(a, b))

    if _is_nan(a) and _is_nan(b):
        return True

    # bool не равен числу: 1 != True, 0 != False
    if isinstance(a, bool) != isinstance(b, bool):
        return False

    # Произвольные объекты одного класса: сравнение собственных атрибутов
    if type(a) is type(b) and hasattr(a, "__dict__") and type(a).__eq__ is object.__eq__:
        return equals(vars(a), vars(b))

    return bool(a == b)
