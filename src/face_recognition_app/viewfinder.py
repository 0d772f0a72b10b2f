#!/usr/bin/env python3
"""Face Recognition Viewfinder.

Live webcam window for registering faces and running timed recognition.

Controls:
    type   : Enter a name
    ENTER  : Register the visible face under the typed name
    TAB    : Detect (recognize faces for 30 seconds)
    BKSP   : Delete last character
    ESC    : Quit

Register and Detect are disabled while a recognition session is running.
"""

import logging
import threading
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .app import FaceRecognitionApp
from .constants import AppConfig, get_app_config
from .exceptions import DeviceError, FaceAppError, ModelLoadError
from .matcher import FaceLabel
from .session import SessionState

logger = logging.getLogger(__name__)

WINDOW_NAME = "Face Recognition App"

KEY_ESC = 27
KEY_TAB = 9
KEY_ENTER = (10, 13)
KEY_BACKSPACE = (8, 127)

COLOR_BOX = (255, 128, 0)
COLOR_WARNING = (0, 165, 255)
COLOR_TEXT = (255, 255, 255)
COLOR_DISABLED = (128, 128, 128)
FONT = cv2.FONT_HERSHEY_SIMPLEX


def draw_face_labels(image: np.ndarray, labels: List[FaceLabel]) -> np.ndarray:
    """Draw one labelled box per face."""
    output = image.copy()
    for item in labels:
        x, y, w, h = item.face.bbox
        cv2.rectangle(output, (x, y), (x + w, y + h), COLOR_BOX, 2)

        text = item.text
        (tw, th), _ = cv2.getTextSize(text, FONT, 0.6, 2)
        top = max(0, y + h)
        cv2.rectangle(output, (x, top), (x + tw + 10, top + th + 10), COLOR_BOX, -1)
        cv2.putText(output, text, (x + 5, top + th + 4), FONT, 0.6, COLOR_TEXT, 2)
    return output


def draw_banner(image: np.ndarray, text: str) -> np.ndarray:
    """Draw the brightness warning across the top of the frame."""
    if not text:
        return image
    output = image.copy()
    cv2.rectangle(output, (0, 0), (output.shape[1], 30), (0, 0, 0), -1)
    cv2.putText(output, text, (10, 21), FONT, 0.5, COLOR_WARNING, 1)
    return output


def draw_controls(image: np.ndarray, name: str, enabled: bool, status: str = "") -> np.ndarray:
    """Draw the name input and trigger hints along the bottom edge."""
    output = image.copy()
    height = output.shape[0]
    color = COLOR_TEXT if enabled else COLOR_DISABLED

    cv2.rectangle(output, (0, height - 50), (output.shape[1], height), (0, 0, 0), -1)
    cursor = "_" if enabled else ""
    cv2.putText(output, f"Name: {name}{cursor}", (10, height - 30), FONT, 0.55, color, 1)
    cv2.putText(
        output,
        "[ENTER] Register   [TAB] Detect   [ESC] Quit",
        (10, height - 10), FONT, 0.5, color, 1,
    )
    if status:
        (tw, _), _ = cv2.getTextSize(status, FONT, 0.55, 1)
        cv2.putText(
            output, status, (output.shape[1] - tw - 10, height - 30),
            FONT, 0.55, COLOR_WARNING, 1,
        )
    return output


def show_notification(image: np.ndarray, message: str) -> None:
    """Show a blocking message until a key is pressed."""
    output = image.copy()
    h, w = output.shape[:2]
    overlay = output.copy()
    cv2.rectangle(overlay, (20, h // 2 - 50), (w - 20, h // 2 + 50), (40, 40, 40), -1)
    output = cv2.addWeighted(overlay, 0.85, output, 0.15, 0)
    cv2.putText(output, message, (40, h // 2 - 5), FONT, 0.6, COLOR_TEXT, 2)
    cv2.putText(output, "Press any key to continue", (40, h // 2 + 30), FONT, 0.5, COLOR_DISABLED, 1)
    cv2.imshow(WINDOW_NAME, output)
    logger.info(message)
    cv2.waitKey(0)


class Viewfinder:
    """OpenCV window around a FaceRecognitionApp."""

    def __init__(self, config: Optional[AppConfig] = None, app: Optional[FaceRecognitionApp] = None):
        self.config = config or get_app_config()
        self.display_size: Tuple[int, int] = (self.config.camera.width, self.config.camera.height)
        self.name = ""

        self._labels: List[FaceLabel] = []
        self._labels_lock = threading.Lock()

        self.app = app or FaceRecognitionApp.from_config(self.config)
        self.app.session.display_size = self.display_size
        self.app.session.on_results = self._on_results
        self.app.session.on_state_change = self._on_state_change

    def _on_results(self, labels: List[FaceLabel]) -> None:
        with self._labels_lock:
            self._labels = labels

    def _on_state_change(self, state: SessionState) -> None:
        if state is SessionState.RUNNING:
            with self._labels_lock:
                self._labels = []

    def _blank(self) -> np.ndarray:
        w, h = self.display_size
        return np.zeros((h, w, 3), dtype=np.uint8)

    def render(self) -> np.ndarray:
        """Compose the current window image."""
        frame = self.app.current_frame()
        if frame is None:
            image = self._blank()
        else:
            image = cv2.resize(frame, self.display_size)

        with self._labels_lock:
            labels = list(self._labels)

        image = draw_face_labels(image, labels)
        image = draw_banner(image, self.app.brightness_warning)
        status = "Detecting..." if not self.app.controls_enabled else ""
        return draw_controls(image, self.name, self.app.controls_enabled, status)

    def handle_key(self, key: int, image: np.ndarray) -> bool:
        """Apply one key press.

        Returns:
            False when the viewfinder should close
        """
        if key == KEY_ESC:
            return False
        if not self.app.controls_enabled:
            return True

        if key in KEY_ENTER:
            self.register(image)
        elif key == KEY_TAB:
            self.detect(image)
        elif key in KEY_BACKSPACE:
            self.name = self.name[:-1]
        elif 32 <= key <= 126:
            self.name += chr(key)
        return True

    def register(self, image: np.ndarray) -> None:
        try:
            identity = self.app.register(self.name)
        except FaceAppError as e:
            show_notification(image, e.user_message)
            return
        self.name = ""
        show_notification(image, f"{identity.label} registered successfully!")

    def detect(self, image: np.ndarray) -> None:
        try:
            self.app.detect()
        except FaceAppError as e:
            show_notification(image, e.user_message)

    def run(self) -> None:
        """Open the camera and run the window loop until ESC."""
        cv2.namedWindow(WINDOW_NAME)
        try:
            try:
                self.app.start_camera()
            except DeviceError as e:
                logger.error(f"Error accessing webcam: {e}")
                show_notification(self._blank(), e.user_message)

            running = True
            while running:
                image = self.render()
                cv2.imshow(WINDOW_NAME, image)
                key = cv2.waitKey(30) & 0xFF
                if key != 0xFF:
                    running = self.handle_key(key, image)
        finally:
            self.app.close()
            cv2.destroyAllWindows()


def run_viewfinder(config: Optional[AppConfig] = None) -> int:
    """Run the face recognition viewfinder.

    Returns:
        Process exit code
    """
    viewfinder = Viewfinder(config)
    try:
        viewfinder.app.detector.load()
        viewfinder.run()
    except ModelLoadError as e:
        logger.error(str(e))
        return 1
    return 0
