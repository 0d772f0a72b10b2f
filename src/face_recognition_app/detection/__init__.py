"""Face detection backends.

Detectors return faces together with their identity descriptors.

Available backends:
- dlib: HOG detector + 68-point landmarks + ResNet 128D descriptors (default)
"""

from .types import DetectedFace
from .base import BaseFaceDetector
from .dlib import DlibFaceDetector

__all__ = [
    "DetectedFace",
    "BaseFaceDetector",
    "DlibFaceDetector",
]
