"""Nearest-descriptor matching against a snapshot of the registry."""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .constants import UNKNOWN_LABEL
from .detection import DetectedFace
from .exceptions import RegistryEmptyError
from .registry import LabeledIdentity

logger = logging.getLogger(__name__)

DEFAULT_DISTANCE_THRESHOLD = 0.6


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """Calculate Euclidean distance between two descriptors."""
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def format_distance(distance: float) -> str:
    """Truncate a distance to 2 decimals, without trailing zeros.

    0.456 -> "0.45", 0.5 -> "0.5", 0.0 -> "0"
    """
    value = math.floor(distance * 100) / 100
    return f"{value:g}"


@dataclass(frozen=True)
class MatchResult:
    """Best match for one probe descriptor."""

    label: str
    distance: float
    identity: Optional[LabeledIdentity] = None

    @property
    def is_known(self) -> bool:
        return self.identity is not None

    def __str__(self) -> str:
        return f"{self.label} ({format_distance(self.distance)})"


@dataclass(frozen=True)
class FaceLabel:
    """A detected face with its match, ready for drawing."""

    face: DetectedFace
    match: MatchResult

    @property
    def text(self) -> str:
        return str(self.match) if self.match.is_known else "Unknown"


class FaceMatcher:
    """Matches probe descriptors against a fixed set of identities.

    The identity set is copied at construction; later registry changes
    do not affect an existing matcher.
    """

    def __init__(
        self,
        identities: Iterable[LabeledIdentity],
        distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
    ):
        """Initialize face matcher.

        Args:
            identities: Labelled identities to match against
            distance_threshold: Maximum distance for a known match

        Raises:
            RegistryEmptyError: If no identities are given
        """
        self._identities: Tuple[LabeledIdentity, ...] = tuple(identities)
        if not self._identities:
            raise RegistryEmptyError("FaceMatcher requires at least one identity")

        self.distance_threshold = distance_threshold

    @property
    def identities(self) -> Tuple[LabeledIdentity, ...]:
        return self._identities

    def find_best_match(self, descriptor: np.ndarray) -> MatchResult:
        """Find the identity closest to a probe descriptor.

        An identity's distance is the minimum over its descriptors; ties
        keep the earlier identity.

        Args:
            descriptor: Probe descriptor

        Returns:
            MatchResult, labelled "unknown" if the nearest distance exceeds
            the threshold
        """
        probe = np.asarray(descriptor, dtype=np.float64).flatten()

        best_identity = None
        best_distance = float("inf")
        for identity in self._identities:
            distance = min(euclidean_distance(probe, d) for d in identity.descriptors)
            if distance < best_distance:
                best_distance = distance
                best_identity = identity

        if best_distance <= self.distance_threshold:
            return MatchResult(best_identity.label, best_distance, best_identity)
        return MatchResult(UNKNOWN_LABEL, best_distance)

    def label_faces(
        self,
        faces: Iterable[DetectedFace],
        source_size: Optional[Tuple[int, int]] = None,
        display_size: Optional[Tuple[int, int]] = None,
    ) -> List[FaceLabel]:
        """Match every face and scale its box for display.

        Faces without a descriptor are skipped.

        Args:
            faces: Detections from the current frame
            source_size: (width, height) of the frame
            display_size: (width, height) of the display surface

        Returns:
            List of FaceLabel in detection order
        """
        labels = []
        for face in faces:
            if face.descriptor is None:
                continue
            match = self.find_best_match(face.descriptor)
            if source_size and display_size and source_size != display_size:
                face = face.resized(source_size, display_size)
            labels.append(FaceLabel(face, match))
        return labels
