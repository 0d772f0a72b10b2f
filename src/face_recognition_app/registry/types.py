"""Registry data types."""

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np


def as_embedding(values: Iterable[float]) -> np.ndarray:
    """Convert a descriptor to a read-only float64 vector."""
    embedding = np.array(values, dtype=np.float64).flatten()
    embedding.flags.writeable = False
    return embedding


@dataclass(frozen=True, eq=False)
class LabeledIdentity:
    """A name paired with one or more descriptors collected for it."""

    label: str
    descriptors: Tuple[np.ndarray, ...]

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label:
            raise ValueError("Identity label must be a non-empty string")
        if len(self.descriptors) == 0:
            raise ValueError(f"Identity '{self.label}' has no descriptors")
        object.__setattr__(
            self, "descriptors", tuple(as_embedding(d) for d in self.descriptors)
        )

    @property
    def sample_count(self) -> int:
        return len(self.descriptors)

    def to_record(self) -> dict:
        """Return the JSON-ready storage record."""
        return {
            "label": self.label,
            "descriptors": [[float(v) for v in d] for d in self.descriptors],
        }

    def __repr__(self) -> str:
        return f"LabeledIdentity(label={self.label!r}, samples={self.sample_count})"
