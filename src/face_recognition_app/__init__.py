"""Face Recognition App.

Registers named faces from a webcam and recognizes them in timed sessions.
Detection, landmarks and 128D descriptors come from dlib; this package owns
the registry, the matching policy and the brightness check.

Quick Start:
    # Run viewfinder
    python -m face_recognition_app run

    # As library
    from face_recognition_app import FaceRecognitionApp, DlibFaceDetector, JsonFileStorage

    app = FaceRecognitionApp(DlibFaceDetector(models_dir="models"),
                             storage=JsonFileStorage("data"))
    app.register("Alice", frame)
    app.detect()
"""

from .app import FaceRecognitionApp
from .brightness import BrightnessMonitor, BrightnessState, average_luma
from .constants import AppConfig, load_app_config
from .detection import BaseFaceDetector, DetectedFace, DlibFaceDetector
from .exceptions import (
    FaceAppError,
    InputError,
    DetectionEmptyError,
    RegistryEmptyError,
    SessionBusyError,
    DeviceError,
    StorageParseError,
    ModelLoadError,
)
from .matcher import FaceLabel, FaceMatcher, MatchResult, euclidean_distance
from .registration import RegistrationService
from .registry import FaceRegistry, JsonFileStorage, LabeledIdentity, MemoryStorage
from .session import InFlightPolicy, RecognitionSession, SessionState

__version__ = "0.1.0"

__all__ = [
    "FaceRecognitionApp",
    "BrightnessMonitor", "BrightnessState", "average_luma",
    "AppConfig", "load_app_config",
    "BaseFaceDetector", "DetectedFace", "DlibFaceDetector",
    "FaceAppError", "InputError", "DetectionEmptyError", "RegistryEmptyError",
    "SessionBusyError", "DeviceError", "StorageParseError", "ModelLoadError",
    "FaceLabel", "FaceMatcher", "MatchResult", "euclidean_distance",
    "RegistrationService",
    "FaceRegistry", "JsonFileStorage", "LabeledIdentity", "MemoryStorage",
    "InFlightPolicy", "RecognitionSession", "SessionState",
]
