"""Pytest configuration and fixtures."""

import sys
import threading
import time
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from face_recognition_app.constants import AppConfig, SessionConfig
from face_recognition_app.detection import BaseFaceDetector, DetectedFace


class FakeDetector(BaseFaceDetector):
    """Detector returning preset faces, optionally blocking until released."""

    def __init__(self, faces=None, block=None, error=None):
        self.faces = list(faces or [])
        self.block = block
        self.error = error
        self.calls = 0
        self.completed = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "fake"

    def detect_all(self, image):
        with self._lock:
            self.calls += 1
        if self.block is not None:
            self.block.wait(5.0)
        if self.error is not None:
            raise self.error
        with self._lock:
            self.completed += 1
        return list(self.faces)


def _make_descriptor(seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, 0.1, 128)


def _make_face(descriptor=None, x=10, y=20, width=50, height=60, confidence=1.0):
    return DetectedFace(
        x=x, y=y, width=width, height=height,
        descriptor=descriptor, confidence=confidence,
    )


def _wait_until(predicate, timeout=2.0, interval=0.005) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def sample_image():
    """Create a sample test image."""
    return np.random.randint(0, 255, (480, 640, 3), dtype=np.uint8)


@pytest.fixture
def dark_frame():
    """Frame whose channel average is 30 everywhere."""
    return np.full((120, 160, 3), 30, dtype=np.uint8)


@pytest.fixture
def bright_frame():
    """Fully white frame."""
    return np.full((120, 160, 3), 255, dtype=np.uint8)


@pytest.fixture
def make_descriptor():
    """Factory for deterministic 128D descriptors, far apart for distinct seeds."""
    return _make_descriptor


@pytest.fixture
def make_face():
    """Factory for DetectedFace objects."""
    return _make_face


@pytest.fixture
def fake_detector_cls():
    """The FakeDetector class."""
    return FakeDetector


@pytest.fixture
def wait_until():
    """Poll a predicate until true or timeout."""
    return _wait_until


@pytest.fixture
def fast_session_config():
    """Session config with short ticks and duration."""
    return SessionConfig(
        poll_interval=0.01,
        duration=0.3,
        skip_if_busy=True,
        in_flight_policy="discard",
        max_workers=2,
    )


@pytest.fixture
def app_config(fast_session_config):
    """App config using the fast session settings."""
    return AppConfig(session=fast_session_config)
