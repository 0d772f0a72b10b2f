"""Face registry holding labelled descriptors, persisted after every change."""

import logging
import threading
from typing import Iterator, List, Optional, Tuple

import numpy as np

from ..exceptions import StorageParseError
from .storage import RegistryStorage, parse_identities, serialize_identities
from .types import LabeledIdentity

logger = logging.getLogger(__name__)


class FaceRegistry:
    """Ordered, append-only collection of labelled identities.

    Writes go through a single lock; readers take an immutable snapshot.
    When a storage is attached the full registry is rewritten after each
    append.
    """

    def __init__(
        self,
        storage: Optional[RegistryStorage] = None,
        embedding_dim: Optional[int] = 128,
    ):
        """Initialize the registry.

        Args:
            storage: Where the registry is persisted. If None, uses
                     in-memory storage only
            embedding_dim: Required descriptor length, or None to accept any
        """
        self._storage = storage
        self.embedding_dim = embedding_dim
        self._identities: List[LabeledIdentity] = []
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        storage: RegistryStorage,
        embedding_dim: Optional[int] = 128,
    ) -> "FaceRegistry":
        """Create a registry and fill it from storage."""
        registry = cls(storage, embedding_dim)
        registry.reload()
        return registry

    def reload(self) -> int:
        """Replace the contents with what storage holds.

        A missing or malformed record yields an empty registry; parse
        failures are logged, never raised.

        Returns:
            Number of identities loaded
        """
        identities: List[LabeledIdentity] = []
        if self._storage is not None:
            try:
                text = self._storage.read()
                if text:
                    identities = parse_identities(text, self.embedding_dim)
            except StorageParseError as e:
                logger.error(f"Failed to load face descriptors from storage: {e}")
            except OSError as e:
                logger.error(f"Failed to read face descriptors from storage: {e}")

        with self._lock:
            self._identities = identities

        logger.info(f"Loaded {len(identities)} identities from storage")
        return len(identities)

    def add(self, label: str, descriptor: np.ndarray) -> LabeledIdentity:
        """Append a new identity with a single descriptor and persist.

        Duplicate labels are appended, never merged.

        Args:
            label: Identity name
            descriptor: Face descriptor

        Returns:
            The appended identity
        """
        identity = LabeledIdentity(label, (descriptor,))
        self.append(identity)
        return identity

    def append(self, identity: LabeledIdentity) -> None:
        """Append an identity and persist the updated registry.

        Storage is written before the in-memory list changes, so a failed
        write leaves both untouched.
        """
        self._check_dim(identity)

        with self._lock:
            updated = self._identities + [identity]
            if self._storage is not None:
                self._storage.write(serialize_identities(updated))
            self._identities = updated

        logger.debug(f"Added identity {identity.label} ({len(updated)} total)")

    def _check_dim(self, identity: LabeledIdentity) -> None:
        if self.embedding_dim is None:
            return
        for descriptor in identity.descriptors:
            if descriptor.shape != (self.embedding_dim,):
                raise ValueError(
                    f"Descriptor for {identity.label} has shape {descriptor.shape}, "
                    f"expected ({self.embedding_dim},)"
                )

    def snapshot(self) -> Tuple[LabeledIdentity, ...]:
        """Return an immutable view of the current identities."""
        with self._lock:
            return tuple(self._identities)

    def get_labels(self) -> List[str]:
        """Get labels in registration order (duplicates included)."""
        return [identity.label for identity in self.snapshot()]

    def get_sample_count(self, label: str) -> int:
        """Get the number of descriptors stored under a label."""
        return sum(
            identity.sample_count
            for identity in self.snapshot()
            if identity.label == label
        )

    @property
    def storage(self) -> Optional[RegistryStorage]:
        return self._storage

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._identities)

    def __iter__(self) -> Iterator[LabeledIdentity]:
        return iter(self.snapshot())

    def __contains__(self, label: str) -> bool:
        return any(identity.label == label for identity in self.snapshot())
