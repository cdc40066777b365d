# tracking/camera_monitor.py

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

import cv2

from tracking.focus_score_engine import Achievement
from tracking.i_attention_classifier import AttentionState
from tracking.i_monitor import IMonitor
from tracking.session_pipeline import SessionStateError, StudySessionPipeline, TickResult

logger = logging.getLogger(__name__)

MAX_FAILED_READS = 30


class CameraInitError(RuntimeError):
    """Camera could not be opened; the session cannot start."""


class CameraMonitor(IMonitor):
    """
    Frame loop for one study session.

    A daemon thread reads frames from the camera and hands each one to
    the session pipeline, then sleeps `tick_seconds`. While the session
    is paused frames are read and dropped, so nothing accumulates.

    Callbacks (all optional, exceptions are logged and swallowed):
      - on_tick(result):          every processed tick
      - on_state_update(state):   only when the attention state changes
      - on_frame(frame, result):  every processed frame, for previews
      - on_achievement(a):        each newly reported achievement
    """

    def __init__(
        self,
        pipeline: StudySessionPipeline,
        *,
        camera_index: int = 0,
        capture_factory: Optional[Callable[[int], Any]] = None,
        on_tick: Optional[Callable[[TickResult], None]] = None,
        on_state_update: Optional[Callable[[AttentionState], None]] = None,
        on_frame: Optional[Callable[[Any, TickResult], None]] = None,
        on_achievement: Optional[Callable[[Achievement], None]] = None,
        tick_seconds: Optional[float] = None,
    ) -> None:
        self.pipeline = pipeline
        self.camera_index = camera_index
        self.capture_factory = capture_factory or cv2.VideoCapture
        self.on_tick = on_tick
        self.on_state_update = on_state_update
        self.on_frame = on_frame
        self.on_achievement = on_achievement
        self.tick_seconds = pipeline.config.tick_seconds if tick_seconds is None else tick_seconds

        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._cap: Optional[Any] = None
        self._last_state: Optional[AttentionState] = None

        # FPS tracking
        self.fps: float = 0.0
        self._frame_count: int = 0
        self._fps_last_time: float = time.monotonic()

    # -------------------------------------------------
    # IMonitor
    # -------------------------------------------------

    def start(self) -> None:
        if self._running:
            return

        cap = self.capture_factory(self.camera_index)
        if cap is None or not cap.isOpened():
            logger.error("cannot open camera %s", self.camera_index)
            if cap is not None:
                cap.release()
            raise CameraInitError(f"cannot open camera {self.camera_index}")

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, 640)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 480)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        self._cap = cap

        self._running = True
        self._thread = threading.Thread(target=self._loop, name="camera-monitor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
        self._thread = None
        if self._cap is not None:
            self._cap.release()
        self._cap = None

    @property
    def running(self) -> bool:
        return self._running

    # -------------------------------------------------
    # Loop
    # -------------------------------------------------

    def _loop(self) -> None:
        failed_reads = 0

        while self._running and self._cap is not None:
            ok, frame = self._cap.read()
            if not ok or frame is None:
                failed_reads += 1
                if failed_reads > MAX_FAILED_READS:
                    logger.error("camera read failed %d times in a row, stopping", failed_reads)
                    break
                time.sleep(0.005)
                continue
            failed_reads = 0

            if not self.pipeline.is_active:
                break

            try:
                self.process(frame)
            except SessionStateError:
                logger.debug("session ended while the camera loop was running")
                break
            time.sleep(self.tick_seconds)

        self._running = False

    def process(self, frame: Any) -> Optional[TickResult]:
        """One tick: fuse the frame and fan the result out to callbacks."""
        result = self.pipeline.process_frame(frame)
        if result is None:
            return None

        self._update_fps()

        self._notify(self.on_tick, result)
        if result.state != self._last_state:
            self._last_state = result.state
            self._notify(self.on_state_update, result.state)
        if self.on_frame is not None:
            self._notify(self.on_frame, frame, result)
        for achievement in result.new_achievements:
            self._notify(self.on_achievement, achievement)
        return result

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------

    def _update_fps(self) -> None:
        self._frame_count += 1
        now = time.monotonic()
        if now - self._fps_last_time >= 1.0:
            self.fps = self._frame_count / (now - self._fps_last_time)
            self._frame_count = 0
            self._fps_last_time = now

    @staticmethod
    def _notify(callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.warning("camera monitor callback failed", exc_info=True)
