"""Application facade wiring camera, registry, registration and sessions."""

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import numpy as np

from .brightness import BrightnessMonitor, BrightnessState
from .constants import AppConfig, get_app_config
from .detection import BaseFaceDetector, DlibFaceDetector
from .exceptions import DeviceError, SessionBusyError
from .matcher import FaceLabel, FaceMatcher
from .registration import RegistrationService
from .registry import FaceRegistry, JsonFileStorage, LabeledIdentity, RegistryStorage
from .sensors import Camera
from .session import RecognitionSession, SessionState

logger = logging.getLogger(__name__)


class FaceRecognitionApp:
    """Owns the registry and coordinates registration with recognition.

    Registration and session start are serialized by one control lock,
    and registration is refused while a session is running.
    """

    def __init__(
        self,
        detector: BaseFaceDetector,
        storage: Optional[RegistryStorage] = None,
        config: Optional[AppConfig] = None,
        camera: Optional[Camera] = None,
        frame_source: Optional[Callable[[], Optional[np.ndarray]]] = None,
        display_size: Optional[Tuple[int, int]] = None,
        on_results: Optional[Callable[[List[FaceLabel]], None]] = None,
        on_state_change: Optional[Callable[[SessionState], None]] = None,
        on_brightness_change: Optional[Callable[[BrightnessState], None]] = None,
    ):
        """Initialize the app.

        Args:
            detector: Face detector with descriptors
            storage: Registry persistence; in-memory only if None
            config: App configuration (config/config.yaml if None)
            camera: Webcam; used as frame source unless one is given
            frame_source: Returns the current frame, or None if not ready
            display_size: (width, height) result boxes are scaled to
            on_results: Receives labels for each recognition tick
            on_state_change: Receives session state transitions
            on_brightness_change: Receives brightness warning changes
        """
        self.config = config or get_app_config()
        self.detector = detector
        self.camera = camera

        embedding_dim = self.config.matching.embedding_dim
        if storage is not None:
            self.registry = FaceRegistry.load(storage, embedding_dim)
        else:
            self.registry = FaceRegistry(None, embedding_dim)

        if frame_source is None:
            frame_source = camera.get_current_image if camera is not None else (lambda: None)
        self._frame_source = frame_source

        self.brightness = BrightnessMonitor(self.config.brightness, on_brightness_change)
        self.registration = RegistrationService(self.registry, detector)
        self.session = RecognitionSession(
            registry=self.registry,
            detector=detector,
            frame_source=frame_source,
            brightness=self.brightness,
            config=self.config.session,
            matching=self.config.matching,
            display_size=display_size,
            on_results=on_results,
            on_state_change=on_state_change,
        )
        self._control_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        detector: Optional[BaseFaceDetector] = None,
        storage: Optional[RegistryStorage] = None,
        camera: Optional[Camera] = None,
        **kwargs,
    ) -> "FaceRecognitionApp":
        """Build an app from configuration with the default collaborators.

        Uses a dlib detector, JSON file storage and the configured webcam
        unless replacements are given.
        """
        if detector is None:
            detector = DlibFaceDetector(config=config.detector)
        if storage is None:
            storage = JsonFileStorage(Path(config.storage.directory), config.storage.key)
        if camera is None:
            camera = Camera(config.camera)
        return cls(detector, storage=storage, config=config, camera=camera, **kwargs)

    def start_camera(self) -> None:
        """Acquire the webcam stream.

        Raises:
            DeviceError: If there is no camera or it cannot be opened
        """
        if self.camera is None:
            raise DeviceError("No camera configured")
        if not self.camera.open():
            raise DeviceError(f"Could not open camera {self.camera.settings.device}")
        self.camera.start_stream()

    def current_frame(self) -> Optional[np.ndarray]:
        """Return the current video frame, or None if the source is not ready."""
        return self._frame_source()

    def register(self, name: str, frame: Optional[np.ndarray] = None) -> LabeledIdentity:
        """Register the face in a frame (the current one by default).

        Raises:
            SessionBusyError: If a recognition session is running
            InputError: If the name is blank
            DetectionEmptyError: If no face was found
        """
        with self._control_lock:
            if self.session.is_running:
                raise SessionBusyError("Cannot register while detection is running")
            if frame is None:
                frame = self.current_frame()
            return self.registration.register(name, frame)

    def detect(self) -> FaceMatcher:
        """Start a recognition session.

        Raises:
            RegistryEmptyError: If no identities are registered
            SessionBusyError: If a session is already running
        """
        with self._control_lock:
            return self.session.start()

    def stop(self) -> None:
        """Cancel the running recognition session."""
        self.session.stop()

    def close(self) -> None:
        """Stop the session and release the camera."""
        self.session.stop()
        self.session.wait(timeout=2.0)
        if self.camera is not None:
            self.camera.close()

    @property
    def controls_enabled(self) -> bool:
        """Whether registration and detection may be triggered."""
        return not self.session.is_running

    @property
    def brightness_warning(self) -> str:
        return self.brightness.warning

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
