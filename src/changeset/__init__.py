"""Change detection — snapshots сущностей и вычисление изменённых полей.

- identity: извлечение одиночных и composite первичных ключей
- normalizer: живая сущность → immutable Snapshot
- differ: минимальный набор изменений между snapshots
"""

from src.changeset.config import (
    COMPOSITE_KEY_SEPARATOR,
    DEFAULT_CONFIG,
    MAX_IDENTITY_DEPTH,
    ChangeSetConfig,
)
from src.changeset.differ import ChangeKind, ChangeSet, EntityDiffer, diff, diff_entities
from src.changeset.identity import (
    CompositeKeyCycleError,
    extract_pk,
    get_composite_key_hash,
    get_serialized_primary_key,
    has_primary_key,
    is_primary_key,
)
from src.changeset.normalizer import (
    DropReason,
    EntityNormalizer,
    Snapshot,
    is_prepared,
    prepare_entity,
)

__all__ = [
    # Config
    "COMPOSITE_KEY_SEPARATOR",
    "MAX_IDENTITY_DEPTH",
    "DEFAULT_CONFIG",
    "ChangeSetConfig",
    # Identity
    "CompositeKeyCycleError",
    "is_primary_key",
    "extract_pk",
    "get_composite_key_hash",
    "get_serialized_primary_key",
    "has_primary_key",
    # Normalizer
    "DropReason",
    "EntityNormalizer",
    "Snapshot",
    "is_prepared",
    "prepare_entity",
    # Differ
    "ChangeKind",
    "ChangeSet",
    "EntityDiffer",
    "diff",
    "diff_entities",
]
