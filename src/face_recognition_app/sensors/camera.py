"""Webcam capture with a background reader keeping the latest frame."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from ..constants import CameraSettings

logger = logging.getLogger(__name__)


@dataclass
class Frame:
    """A captured frame with metadata."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)


class Camera:
    """Single shared webcam stream, acquired once and released on close."""

    def __init__(self, settings: Optional[CameraSettings] = None):
        """Initialize camera.

        Args:
            settings: Camera settings (uses defaults if None)
        """
        self.settings = settings or CameraSettings()

        self._capture = None
        self._is_open = False
        self._frame_count = 0
        self._lock = threading.Lock()

        self._streaming = False
        self._stream_thread: Optional[threading.Thread] = None
        self._current_frame: Optional[Frame] = None

    def open(self) -> bool:
        """Open camera for capture.

        Returns:
            True if camera opened successfully
        """
        with self._lock:
            if self._is_open:
                return True

            device: Union[int, str] = self.settings.device
            if isinstance(device, str) and device.isdigit():
                device = int(device)

            try:
                self._capture = cv2.VideoCapture(device)
            except cv2.error as e:
                logger.error(f"Error opening camera {device}: {e}")
                return False

            if not self._capture.isOpened():
                logger.error(f"Failed to open camera device {device}")
                self._capture.release()
                self._capture = None
                return False

            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.settings.width)
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.settings.height)
            self._capture.set(cv2.CAP_PROP_FPS, self.settings.fps)
            self._capture.set(cv2.CAP_PROP_BUFFERSIZE, 1)

            self._is_open = True
            logger.info(f"Opened camera: {device}")
            return True

    def close(self):
        """Close camera and release resources."""
        self.stop_stream()

        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None
            self._is_open = False
            logger.info("Camera closed")

    def read(self) -> Optional[Frame]:
        """Read a single frame from the camera.

        Returns:
            Frame object or None if the camera is closed or the read failed
        """
        with self._lock:
            if not self._is_open:
                return None

            ok, image = self._capture.read()
            if not ok or image is None:
                return None

            self._frame_count += 1
            return Frame(
                image=image,
                timestamp=time.time(),
                frame_number=self._frame_count,
            )

    def start_stream(self):
        """Start the background reader that keeps the latest frame."""
        if self._streaming:
            return

        self._streaming = True
        self._stream_thread = threading.Thread(
            target=self._stream_loop,
            name="camera-stream",
            daemon=True,
        )
        self._stream_thread.start()
        logger.info("Started camera stream")

    def _stream_loop(self):
        """Background streaming loop."""
        while self._streaming:
            frame = self.read()
            if frame is not None:
                self._current_frame = frame
            else:
                time.sleep(0.05)

    def stop_stream(self):
        """Stop background streaming."""
        if not self._streaming:
            return
        self._streaming = False
        if self._stream_thread is not None:
            self._stream_thread.join(timeout=2.0)
            self._stream_thread = None
        logger.info("Stopped camera stream")

    def get_current_image(self) -> Optional[np.ndarray]:
        """Get the image of the most recent frame, or None if not ready."""
        frame = self._current_frame
        return frame.image if frame is not None else None

    @property
    def is_open(self) -> bool:
        """Check if camera is open."""
        return self._is_open

    @property
    def is_streaming(self) -> bool:
        """Check if background streaming is active."""
        return self._streaming

    @property
    def frame_count(self) -> int:
        """Get total frames captured."""
        return self._frame_count

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
