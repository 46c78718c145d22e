"""
Domain collaborators: entity markers, references, collections and metadata.

Contains the shapes the change detection core consumes: EntityMetadata,
PropertyDescriptor, MetadataStorage, CustomType, Entity, Reference, Collection.
"""

from src.core.domain.entity import (
    UNSET,
    Collection,
    Entity,
    Reference,
    entity_class_for,
    entity_type_of,
    is_collection,
    is_entity,
    is_object_id,
    is_reference,
    is_unset,
    meta_of,
    unwrap_reference,
    wrap_reference,
)
from src.core.domain.metadata import (
    EntityMetadata,
    MetadataNotFoundError,
    MetadataStorage,
    PropertyDescriptor,
    ReferenceKind,
)
from src.core.domain.types import CustomType

__all__ = [
    # Entity model
    "UNSET",
    "Entity",
    "Reference",
    "Collection",
    "entity_class_for",
    "entity_type_of",
    "meta_of",
    "is_entity",
    "is_reference",
    "is_collection",
    "is_object_id",
    "is_unset",
    "unwrap_reference",
    "wrap_reference",
    # Metadata
    "ReferenceKind",
    "PropertyDescriptor",
    "EntityMetadata",
    "MetadataStorage",
    "MetadataNotFoundError",
    # Codecs
    "CustomType",
]
