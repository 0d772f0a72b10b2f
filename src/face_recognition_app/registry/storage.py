"""Key-value storage for the persisted registry record.

The record is a JSON array of ``{"label": str, "descriptors": [[float, ...]]}``.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..constants import STORAGE_KEY
from ..exceptions import StorageParseError
from .types import LabeledIdentity

logger = logging.getLogger(__name__)


def serialize_identities(identities: Sequence[LabeledIdentity]) -> str:
    """Serialize identities to the JSON storage record."""
    return json.dumps([identity.to_record() for identity in identities])


def parse_identities(text: str, embedding_dim: Optional[int] = 128) -> List[LabeledIdentity]:
    """Parse a JSON storage record.

    Args:
        text: JSON text as written by serialize_identities
        embedding_dim: Required descriptor length, or None to accept any

    Returns:
        Identities in stored order

    Raises:
        StorageParseError: If the text is not a valid record
    """
    try:
        records = json.loads(text)
    except ValueError as e:
        raise StorageParseError(f"Invalid JSON in registry record: {e}")

    if not isinstance(records, list):
        raise StorageParseError("Registry record must be a JSON array")

    identities = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise StorageParseError(f"Entry {index} is not an object")

        label = record.get("label")
        descriptors = record.get("descriptors")
        if not isinstance(label, str) or not label:
            raise StorageParseError(f"Entry {index} has no label")
        if not isinstance(descriptors, list) or not descriptors:
            raise StorageParseError(f"Entry {index} ({label}) has no descriptors")

        for descriptor in descriptors:
            if not isinstance(descriptor, list) or not all(
                isinstance(v, (int, float)) and not isinstance(v, bool)
                for v in descriptor
            ):
                raise StorageParseError(f"Entry {index} ({label}) has a non-numeric descriptor")
            if embedding_dim is not None and len(descriptor) != embedding_dim:
                raise StorageParseError(
                    f"Entry {index} ({label}) descriptor has length "
                    f"{len(descriptor)}, expected {embedding_dim}"
                )

        identities.append(LabeledIdentity(label, tuple(descriptors)))

    return identities


class RegistryStorage(ABC):
    """Abstract key-value storage holding one registry record."""

    key: str = STORAGE_KEY

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored text, or None if nothing is stored."""
        pass

    @abstractmethod
    def write(self, text: str) -> None:
        """Replace the stored text."""
        pass


class MemoryStorage(RegistryStorage):
    """In-memory storage, shared across instances through an optional dict."""

    def __init__(self, key: str = STORAGE_KEY, backing: Optional[Dict[str, str]] = None):
        self.key = key
        self._data = backing if backing is not None else {}

    def read(self) -> Optional[str]:
        return self._data.get(self.key)

    def write(self, text: str) -> None:
        self._data[self.key] = text


class JsonFileStorage(RegistryStorage):
    """Stores the record as ``<directory>/<key>.json``.

    Writes go to a temporary file in the same directory which then
    replaces the record, so an interrupted write keeps the previous one.
    """

    def __init__(self, directory: Union[str, Path], key: str = STORAGE_KEY):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def read(self) -> Optional[str]:
        """Return the stored text, or None if the file does not exist.

        Raises:
            StorageParseError: If the file is not valid UTF-8
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError as e:
            raise StorageParseError(f"{self.path} is not valid UTF-8: {e}") from e

    def write(self, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.directory, prefix=f".{self.key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote registry record to {self.path}")
