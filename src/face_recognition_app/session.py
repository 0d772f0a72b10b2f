"""Timed recognition session: polls the camera, detects and labels faces.

State machine: IDLE -> RUNNING -> IDLE. A session runs for a fixed duration
or until stopped. Each poll tick checks brightness and submits multi-face
detection to a worker pool; finished detections are matched against a
snapshot of the registry taken when the session started.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from functools import partial
from typing import Callable, List, Optional, Set, Tuple

import numpy as np

from .brightness import BrightnessMonitor
from .constants import MatchingConfig, SessionConfig
from .detection import BaseFaceDetector
from .exceptions import RegistryEmptyError, SessionBusyError
from .matcher import FaceLabel, FaceMatcher
from .registry import FaceRegistry

logger = logging.getLogger(__name__)

FrameSource = Callable[[], Optional[np.ndarray]]


class SessionState(Enum):
    """Recognition session states."""
    IDLE = "idle"
    RUNNING = "running"


class InFlightPolicy(Enum):
    """What happens to a detection still running when the session ends."""
    # Let it finish, drop its result
    DISCARD = "discard"
    # Cancel queued detections, drop results of running ones
    CANCEL = "cancel"
    # Let it finish and still deliver its result
    APPLY = "apply"


class RecognitionSession:
    """Controller for timed face recognition sessions."""

    def __init__(
        self,
        registry: FaceRegistry,
        detector: BaseFaceDetector,
        frame_source: FrameSource,
        brightness: Optional[BrightnessMonitor] = None,
        config: Optional[SessionConfig] = None,
        matching: Optional[MatchingConfig] = None,
        display_size: Optional[Tuple[int, int]] = None,
        on_results: Optional[Callable[[List[FaceLabel]], None]] = None,
        on_state_change: Optional[Callable[[SessionState], None]] = None,
    ):
        """Initialize the session controller.

        Args:
            registry: Registry snapshotted at each session start
            detector: Multi-face detector with descriptors
            frame_source: Returns the current frame, or None if not ready
            brightness: Monitor run once per tick
            config: Timing and concurrency settings
            matching: Distance threshold settings
            display_size: (width, height) boxes are scaled to; defaults
                          to the frame size
            on_results: Called with the labels of each finished detection
            on_state_change: Called on every state transition
        """
        self.registry = registry
        self.detector = detector
        self.frame_source = frame_source
        self.brightness = brightness or BrightnessMonitor()
        self.config = config or SessionConfig()
        self.matching = matching or MatchingConfig()
        self.display_size = display_size
        self.on_results = on_results
        self.on_state_change = on_state_change
        self.in_flight_policy = InFlightPolicy(self.config.in_flight_policy)

        self._state = SessionState.IDLE
        self._state_lock = threading.Lock()
        self._pending_lock = threading.Lock()
        self._pending: Set[Future] = set()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._matcher: Optional[FaceMatcher] = None
        self._generation = 0

        self._tick_count = 0
        self._skipped_ticks = 0
        self._latest_results: List[FaceLabel] = []

    def start(self) -> FaceMatcher:
        """Start a session.

        Returns:
            The matcher built from the registry snapshot

        Raises:
            SessionBusyError: If a session is already running
            RegistryEmptyError: If no identities are registered
        """
        with self._state_lock:
            if self._state is SessionState.RUNNING:
                raise SessionBusyError("Recognition session already running")

            identities = self.registry.snapshot()
            if not identities:
                raise RegistryEmptyError("No identities registered")

            self._matcher = FaceMatcher(identities, self.matching.distance_threshold)
            self._generation += 1
            self._stop_event = threading.Event()
            self._executor = ThreadPoolExecutor(
                max_workers=max(1, self.config.max_workers),
                thread_name_prefix="face-detect",
            )
            with self._pending_lock:
                self._pending = set()
            self._tick_count = 0
            self._skipped_ticks = 0
            self._latest_results = []
            self._state = SessionState.RUNNING

            self._thread = threading.Thread(
                target=self._run,
                args=(self._generation, self._stop_event, time.monotonic()),
                name="recognition-session",
                daemon=True,
            )
            self._thread.start()
            matcher = self._matcher

        logger.info(
            f"Recognition session started with {len(identities)} identities "
            f"({self.config.duration:.0f}s, every {self.config.poll_interval}s)"
        )
        self._notify_state(SessionState.RUNNING)
        return matcher

    def stop(self) -> None:
        """Cancel the running session. No-op when idle."""
        if self._state is SessionState.RUNNING:
            logger.info("Stopping recognition session")
            self._stop_event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the session returns to idle.

        Returns:
            True if the session is idle
        """
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        return self._state is SessionState.IDLE

    def _run(self, generation: int, stop_event: threading.Event, started_at: float) -> None:
        """Scheduler loop: one tick per poll interval until deadline or stop."""
        interval = self.config.poll_interval
        deadline = started_at + self.config.duration
        next_tick = started_at + interval

        try:
            while True:
                wake_at = min(next_tick, deadline)
                if stop_event.wait(max(0.0, wake_at - time.monotonic())):
                    logger.info("Recognition session cancelled")
                    break
                if time.monotonic() >= deadline:
                    logger.info("Recognition session finished")
                    break

                self._tick(generation)
                next_tick += interval
        finally:
            self._finish(generation)

    def _tick(self, generation: int) -> None:
        """Run one poll tick."""
        self._tick_count += 1

        try:
            frame = self.frame_source()
            self.brightness.check(frame)
        except Exception as e:
            logger.error(f"Frame capture failed: {e}")
            return

        if frame is None:
            return

        with self._pending_lock:
            if self.config.skip_if_busy and self._pending:
                self._skipped_ticks += 1
                logger.debug("Detection still running, skipping tick")
                return
            future = self._executor.submit(self.detector.detect_all, frame)
            self._pending.add(future)

        frame_size = (frame.shape[1], frame.shape[0])
        future.add_done_callback(
            partial(self._on_detection_done, generation, self._matcher, frame_size)
        )

    def _on_detection_done(
        self,
        generation: int,
        matcher: FaceMatcher,
        frame_size: Tuple[int, int],
        future: Future,
    ) -> None:
        with self._pending_lock:
            self._pending.discard(future)

        if future.cancelled():
            return

        error = future.exception()
        if error is not None:
            logger.error(f"Face detection failed: {error}")
            return

        if not self._accepts(generation):
            logger.debug("Discarding detection finished after session end")
            return

        labels = matcher.label_faces(
            future.result(), frame_size, self.display_size or frame_size
        )
        self._latest_results = labels

        if self.on_results is not None:
            try:
                self.on_results(labels)
            except Exception as e:
                logger.error(f"Results callback error: {e}")

    def _accepts(self, generation: int) -> bool:
        """Whether a result from the given session may still be delivered."""
        if generation != self._generation:
            return False
        if self._state is SessionState.RUNNING:
            return True
        return self.in_flight_policy is InFlightPolicy.APPLY

    def _finish(self, generation: int) -> None:
        with self._state_lock:
            if generation != self._generation:
                return
            executor = self._executor
            self._state = SessionState.IDLE

        if executor is not None:
            cancel = self.in_flight_policy is InFlightPolicy.CANCEL
            executor.shutdown(wait=False, cancel_futures=cancel)

        logger.info(
            f"Recognition session idle after {self._tick_count} ticks "
            f"({self._skipped_ticks} skipped)"
        )
        self._notify_state(SessionState.IDLE)

    def _notify_state(self, state: SessionState) -> None:
        if self.on_state_change is None:
            return
        try:
            self.on_state_change(state)
        except Exception as e:
            logger.error(f"State callback error: {e}")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def tick_count(self) -> int:
        """Ticks run in the current or last session."""
        return self._tick_count

    @property
    def skipped_ticks(self) -> int:
        return self._skipped_ticks

    @property
    def pending_detections(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    @property
    def latest_results(self) -> List[FaceLabel]:
        return list(self._latest_results)

    @property
    def matcher(self) -> Optional[FaceMatcher]:
        """Matcher of the current or last session."""
        return self._matcher
