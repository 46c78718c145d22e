"""
Differ — минимальный набор изменённых полей между двумя snapshots

diff(A, B) возвращает поля B, которые отсутствуют в A или структурно не равны.
Поля, присутствующие только в A, игнорируются: результат описывает,
что нужно изменить, чтобы A стал B. Порядок ключей — порядок полей B.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from src.changeset.config import ChangeSetConfig
from src.changeset.identity import extract_pk
from src.changeset.normalizer import EntityNormalizer
from src.core.contracts import validate_change_set
from src.core.domain.entity import entity_type_of
from src.core.domain.metadata import MetadataStorage
from src.core.structural import equals


def diff(a: Mapping, b: Mapping) -> Dict[str, Any]:
    """
    Поля b, отсутствующие в a или отличающиеся от a (deep equality).

    Examples:
        >>> diff({"x": 1, "y": 2}, {"x": 1, "y": 3, "z": 4})
        {'y': 3, 'z': 4}
    """
    return {key: b[key] for key in b if key not in a or not equals(a[key], b[key])}


def diff_entities(
    a: Any,
    b: Any,
    metadata: MetadataStorage,
    platform: Any = None,
    config: Optional[ChangeSetConfig] = None,
) -> Dict[str, Any]:
    """Нормализовать обе сущности и вернуть diff их snapshots."""
    return EntityDiffer(metadata, platform, config).diff_entities(a, b)


# =============================================================================
# CHANGE SET
# =============================================================================


class ChangeKind(str, Enum):
    """Тип набора изменений"""

    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class ChangeSet:
    """Изменения одной сущности, готовые для слоя хранения."""

    entity: str
    kind: ChangeKind
    identity: Any
    changes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Сериализация по контракту change_set.

        Raises:
            ValidationError: Если результат не соответствует контракту
        """
        identity = self.identity
        # ObjectId и прочие непрозрачные ключи сериализуются строкой
        if identity is not None and not isinstance(identity, (str, int, float)):
            identity = str(identity)

        data = {
            "entity": self.entity,
            "kind": self.kind.value,
            "identity": identity,
            "changes": dict(self.changes),
        }
        validate_change_set(data)
        return data


# =============================================================================
# ENTITY DIFFER
# =============================================================================


class EntityDiffer:
    """
    Сравнение сущностей через их snapshots.

    Типичный сценарий flush: snapshot снимается при загрузке сущности,
    при flush вызывается compute(entity, original_snapshot).
    """

    def __init__(
        self,
        metadata: MetadataStorage,
        platform: Any = None,
        config: Optional[ChangeSetConfig] = None,
    ):
        self.normalizer = EntityNormalizer(metadata, platform, config)

    @property
    def metadata(self) -> MetadataStorage:
        return self.normalizer.metadata

    def snapshot(self, entity: Any):
        return self.normalizer.prepare(entity)

    def diff_entities(self, a: Any, b: Any) -> Dict[str, Any]:
        return diff(self.normalizer.prepare(a), self.normalizer.prepare(b))

    def compute(self, entity: Any, original: Optional[Mapping] = None) -> Optional[ChangeSet]:
        """
        Набор изменений сущности относительно ранее снятого snapshot.

        Args:
            entity: Живая сущность
            original: Snapshot на момент загрузки (None → новая сущность)

        Returns:
            ChangeSet или None, если изменений нет
        """
        current = self.normalizer.prepare(entity)
        changes = diff(original if original is not None else {}, current)

        if not changes:
            return None

        meta = self.metadata.get(current.entity_type or entity_type_of(entity))

        return ChangeSet(
            entity=meta.name,
            kind=ChangeKind.CREATE if original is None else ChangeKind.UPDATE,
            identity=extract_pk(entity, meta, self.metadata, self.normalizer.config),
            changes=changes,
        )
