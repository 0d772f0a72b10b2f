"""Base face detector interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from .types import DetectedFace


class BaseFaceDetector(ABC):
    """Abstract base class for detectors that also compute descriptors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the detection backend."""
        pass

    def load(self) -> None:
        """Load model resources ahead of the first detection."""
        pass

    @abstractmethod
    def detect_all(self, image: np.ndarray) -> List[DetectedFace]:
        """Detect every face in an image and compute its descriptor.

        Args:
            image: BGR image as numpy array

        Returns:
            List of DetectedFace objects with descriptors
        """
        pass

    def detect_single(self, image: np.ndarray) -> Optional[DetectedFace]:
        """Detect one face and compute its descriptor.

        Which face is returned when several are present is up to the
        backend; the default picks the most confident one.

        Args:
            image: BGR image as numpy array

        Returns:
            DetectedFace, or None if no face was found
        """
        faces = self.detect_all(image)
        if not faces:
            return None
        return max(faces, key=lambda f: f.confidence)
