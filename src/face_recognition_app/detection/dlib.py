"""Dlib face detector with 128D descriptors."""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Union

import cv2
import numpy as np

from ..constants import DetectorConfig
from ..exceptions import ModelLoadError
from .base import BaseFaceDetector
from .types import DetectedFace

logger = logging.getLogger(__name__)


class DlibFaceDetector(BaseFaceDetector):
    """Face detector using dlib's HOG detector, 68-point landmarks and ResNet model.

    Each detection carries the 128D descriptor computed from its aligned
    landmarks, so detection and embedding happen in one call.

    Model files are read from ``models_dir``:
        shape_predictor_68_face_landmarks.dat
        dlib_face_recognition_resnet_model_v1.dat
    Download from http://dlib.net/files/
    """

    def __init__(
        self,
        models_dir: Optional[Union[str, Path]] = None,
        upsample_num_times: Optional[int] = None,
        config: Optional[DetectorConfig] = None,
    ):
        """Initialize dlib face detector.

        Args:
            models_dir: Directory holding the dlib model files
            upsample_num_times: Image upsampling before detection
            config: Detector settings (defaults if None)
        """
        self.config = config or DetectorConfig()
        self.models_dir = Path(models_dir or self.config.models_dir)
        self.upsample_num_times = (
            upsample_num_times
            if upsample_num_times is not None
            else self.config.upsample_num_times
        )

        self._detector = None
        self._shape_predictor = None
        self._face_rec = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "dlib"

    def load(self) -> None:
        """Load dlib models. Called lazily on first detection.

        Raises:
            ModelLoadError: If dlib is not installed or a model file is missing
        """
        if self._face_rec is not None:
            return

        try:
            import dlib
        except ImportError:
            raise ModelLoadError(
                "dlib is required. Install with: pip install dlib"
            )

        predictor_path = self.models_dir / self.config.shape_predictor_file
        recognition_path = self.models_dir / self.config.recognition_model_file
        for path in (predictor_path, recognition_path):
            if not path.exists():
                raise ModelLoadError(
                    f"Model not found: {path}. "
                    f"Download from: http://dlib.net/files/{path.name}.bz2"
                )

        self._detector = dlib.get_frontal_face_detector()
        self._shape_predictor = dlib.shape_predictor(str(predictor_path))
        self._face_rec = dlib.face_recognition_model_v1(str(recognition_path))
        logger.info(f"Loaded dlib face models from {self.models_dir}")

    def detect_all(self, image: np.ndarray) -> List[DetectedFace]:
        """Detect all faces and compute a descriptor for each."""
        with self._lock:
            self.load()
            rgb = self._to_rgb(image)
            return [
                self._describe(rgb, rect, score)
                for rect, score in self._find_faces(rgb)
            ]

    def detect_single(self, image: np.ndarray) -> Optional[DetectedFace]:
        """Detect the highest-scoring face and compute only its descriptor."""
        with self._lock:
            self.load()
            rgb = self._to_rgb(image)
            faces = self._find_faces(rgb)
            if not faces:
                return None
            rect, score = max(faces, key=lambda item: item[1])
            return self._describe(rgb, rect, score)

    @staticmethod
    def _to_rgb(image: np.ndarray) -> np.ndarray:
        # dlib expects RGB
        if image.ndim == 3 and image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
        if image.ndim == 3 and image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)

    def _find_faces(self, rgb: np.ndarray) -> list:
        detections, scores, _ = self._detector.run(
            rgb, self.upsample_num_times, 0.0
        )
        return [
            (rect, score)
            for rect, score in zip(detections, scores)
            if rect.width() > 0 and rect.height() > 0
        ]

    def _describe(self, rgb: np.ndarray, rect, score: float) -> DetectedFace:
        shape = self._shape_predictor(rgb, rect)
        descriptor = np.array(
            self._face_rec.compute_face_descriptor(rgb, shape), dtype=np.float64
        )
        descriptor.flags.writeable = False

        x = max(0, rect.left())
        y = max(0, rect.top())
        return DetectedFace(
            x=x,
            y=y,
            width=rect.right() - x,
            height=rect.bottom() - y,
            descriptor=descriptor,
            confidence=float(score),
        )
