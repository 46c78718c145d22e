"""
Deep Merge — рекурсивное слияние вложенных структур

Общий примитив (не entity-aware), используется хост-системой для композиции
конфигураций и значений по умолчанию.

Правила для каждого source (слева направо, каждый следующий перекрывает предыдущий):
- Значение-Mapping → рекурсивно сливается во вложенный dict target (создаётся при отсутствии)
- Любое другое значение (list, bytes, datetime, re.Pattern, скаляр) → перезаписывает целиком
"""

from collections.abc import Mapping, MutableMapping
from typing import Any


def merge(target: Any, *sources: Any) -> Any:
    """
    Рекурсивно слить все sources в target.

    Мутирует и возвращает target. Если target или source не является
    Mapping, этот source пропускается.

    Args:
        target: Изменяемый dict-приёмник
        *sources: Источники, применяются слева направо

    Returns:
        Тот же объект target

    Examples:
        >>> merge({"a": 1}, {"a": 2, "b": 3}, {"a": 4})
        {'a': 4, 'b': 3}
        >>> merge({"n": {"x": 1}}, {"n": {"y": 2}})
        {'n': {'x': 1, 'y': 2}}
    """
    for source in sources:
        if not isinstance(target, MutableMapping) or not isinstance(source, Mapping):
            continue

        for key, value in source.items():
            if isinstance(value, Mapping):
                if key not in target:
                    target[key] = {}
                # Скалярное значение в target не заменяется вложенной структурой
                merge(target[key], value)
            else:
                target[key] = value

    return target
