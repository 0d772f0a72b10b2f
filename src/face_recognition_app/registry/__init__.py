"""Face registry.

Contains:
- LabeledIdentity: a name with its descriptors
- FaceRegistry: ordered, persisted collection of identities
- Storage backends for the persisted record (JSON file, in-memory)
"""

from .types import LabeledIdentity, as_embedding
from .database import FaceRegistry
from .storage import (
    RegistryStorage,
    MemoryStorage,
    JsonFileStorage,
    serialize_identities,
    parse_identities,
)

__all__ = [
    "LabeledIdentity", "as_embedding",
    "FaceRegistry",
    "RegistryStorage", "MemoryStorage", "JsonFileStorage",
    "serialize_identities", "parse_identities",
]
