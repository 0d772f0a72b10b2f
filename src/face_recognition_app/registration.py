"""Face registration: one detected face becomes a new labelled identity."""

import logging
from typing import Optional

import numpy as np

from .detection import BaseFaceDetector
from .exceptions import DetectionEmptyError, InputError
from .registry import FaceRegistry, LabeledIdentity

logger = logging.getLogger(__name__)


class RegistrationService:
    """Registers faces from video frames into a FaceRegistry."""

    def __init__(self, registry: FaceRegistry, detector: BaseFaceDetector):
        self.registry = registry
        self.detector = detector

    def register(self, name: str, frame: Optional[np.ndarray]) -> LabeledIdentity:
        """Register the face found in a frame under a name.

        When several faces are visible, the one the detector returns
        from its single-face call is used.

        Args:
            name: Identity name entered by the user
            frame: Current video frame, or None if the camera has none

        Returns:
            The appended identity

        Raises:
            InputError: If the name is blank
            DetectionEmptyError: If there is no frame or no face in it
        """
        name = (name or "").strip()
        if not name:
            raise InputError("Registration name is empty")

        detection = None
        if frame is not None:
            detection = self.detector.detect_single(frame)

        if detection is None or detection.descriptor is None:
            logger.warning(f"No face detected for {name}")
            raise DetectionEmptyError(f"No face detected for {name}")

        identity = self.registry.add(name, detection.descriptor)
        logger.info(f"Registered face for {name} ({len(self.registry)} identities)")
        return identity
