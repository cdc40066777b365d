# study/session_tracker.py

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

from detection.i_landmark_detector import ILandmarkDetector
from detection.i_object_detector import IObjectDetector
from study.database import Database
from study.models.achievement import AchievementRecord
from study.models.study_session import StudySession
from study.services.achievement_service import AchievementService
from study.services.session_service import SessionService
from tracking.camera_monitor import CameraMonitor
from tracking.config import TrackerConfig
from tracking.focus_score_engine import Achievement
from tracking.i_attention_classifier import AttentionState
from tracking.session_pipeline import SessionStateError, StudySessionPipeline, TickResult

logger = logging.getLogger(__name__)


class SessionTracker:
    """
    Connects one study session (pipeline + camera loop) to the SQLite
    database.

    - start_session(user_id, subject):
        * builds a StudySessionPipeline and starts it
        * starts a CameraMonitor feeding frames into it
    - pause_session() / resume_session(): paused time is not scored
    - stop_session():
        * stops the camera loop and ends the pipeline
        * saves the SessionSummary into study_sessions
        * unlocks every achievement earned during the session
    - UI subscribes with register_ui_callbacks(); callbacks run on the
      camera thread.
    """

    def __init__(
        self,
        db: Database,
        config: Optional[TrackerConfig] = None,
        *,
        object_detector: Optional[IObjectDetector] = None,
        landmark_detector: Optional[ILandmarkDetector] = None,
        camera_index: int = 0,
        capture_factory: Optional[Callable[[int], Any]] = None,
    ):
        self.db = db
        self.config = config or TrackerConfig()
        self.object_detector = object_detector
        self.landmark_detector = landmark_detector
        self.camera_index = camera_index
        self.capture_factory = capture_factory

        self._db_lock = threading.Lock()
        self._session_service = SessionService(db)
        self._achievement_service = AchievementService(db)

        self.user_id: Optional[str] = None
        self.pipeline: Optional[StudySessionPipeline] = None
        self._camera_monitor: Optional[CameraMonitor] = None

        # last known values (for UI)
        self._current_state: AttentionState = AttentionState.FOCUSED
        self._last_result: Optional[TickResult] = None

        self._ui_state_callback: Optional[Callable[[AttentionState], None]] = None
        self._ui_tick_callback: Optional[Callable[[TickResult], None]] = None
        self._ui_frame_callback: Optional[Callable[[Any, TickResult], None]] = None
        self._ui_achievement_callback: Optional[Callable[[Achievement], None]] = None

    # ------------------------------------------------------------------ #
    # PUBLIC API
    # ------------------------------------------------------------------ #

    @property
    def active(self) -> bool:
        return self.pipeline is not None and self.pipeline.is_active

    def start_session(self, user_id: str, subject: str) -> StudySessionPipeline:
        """
        Start tracking a new session. Raises SessionStateError if one is
        already running and CameraInitError if the camera cannot be opened.
        """
        if self.active:
            raise SessionStateError("a study session is already running")

        pipeline = StudySessionPipeline(
            subject,
            self.config,
            object_detector=self.object_detector,
            landmark_detector=self.landmark_detector,
        )
        pipeline.start()

        monitor_kwargs = {}
        if self.capture_factory is not None:
            monitor_kwargs["capture_factory"] = self.capture_factory

        monitor = CameraMonitor(
            pipeline,
            camera_index=self.camera_index,
            on_tick=self._on_tick,
            on_state_update=self._on_state_change,
            on_frame=self._on_camera_frame,
            on_achievement=self._on_achievement,
            **monitor_kwargs,
        )
        try:
            monitor.start()
        except Exception:
            pipeline.end()
            raise

        self.user_id = user_id
        self.pipeline = pipeline
        self._camera_monitor = monitor
        self._current_state = AttentionState.FOCUSED
        self._last_result = None
        logger.info("tracking started for user %s (%s)", user_id, subject)
        return pipeline

    def pause_session(self) -> None:
        if self.pipeline is not None:
            self.pipeline.pause()

    def resume_session(self) -> None:
        if self.pipeline is not None:
            self.pipeline.resume()

    def stop_session(self) -> Optional[StudySession]:
        """
        Stop the camera loop, end the pipeline and persist the result.
        Returns the saved StudySession, or None when nothing was running.
        """
        if self._camera_monitor is not None:
            self._camera_monitor.stop()
            self._camera_monitor = None

        pipeline, user_id = self.pipeline, self.user_id
        self.pipeline = None
        self.user_id = None
        if pipeline is None or not pipeline.is_active:
            return None

        summary = pipeline.end()
        with self._db_lock:
            saved = self._session_service.save_session(user_id, summary)
            for achievement in summary.achievements:
                self._achievement_service.unlock(user_id, achievement)

        logger.info(
            "saved session %s for user %s: score=%d", saved.id, user_id, saved.focus_score
        )
        return saved

    def shutdown(self) -> None:
        """Graceful shutdown hook: stops and saves a running session."""
        try:
            self.stop_session()
        except Exception:
            logger.exception("final session save failed")

    # ------------------------------------------------------------------ #
    # UI callbacks & helpers
    # ------------------------------------------------------------------ #

    def register_ui_callbacks(
        self,
        on_state_change: Optional[Callable[[AttentionState], None]] = None,
        on_tick: Optional[Callable[[TickResult], None]] = None,
        on_camera_frame: Optional[Callable[[Any, TickResult], None]] = None,
        on_achievement: Optional[Callable[[Achievement], None]] = None,
    ) -> None:
        """
        Allow UI (the dashboard) to subscribe to session events without
        owning a camera loop itself. The current state is pushed once
        immediately.
        """
        self._ui_state_callback = on_state_change
        self._ui_tick_callback = on_tick
        self._ui_frame_callback = on_camera_frame
        self._ui_achievement_callback = on_achievement

        self._forward(self._ui_state_callback, self._current_state)

    def get_state(self) -> AttentionState:
        return self._current_state

    def get_stats(self) -> Optional[dict]:
        if self.pipeline is None:
            return None
        return self.pipeline.score_engine.stats()

    def history(self, user_id: str, limit: Optional[int] = None) -> List[StudySession]:
        """Saved sessions of a user, newest first."""
        return self._session_service.list_sessions(user_id, limit)

    def achievements(self, user_id: str) -> List[AchievementRecord]:
        return self._achievement_service.list_achievements(user_id)

    # ------------------------------------------------------------------ #
    # CALLBACKS FROM THE CAMERA LOOP
    # ------------------------------------------------------------------ #

    def _on_tick(self, result: TickResult) -> None:
        self._last_result = result
        self._forward(self._ui_tick_callback, result)

    def _on_state_change(self, state: AttentionState) -> None:
        self._current_state = state
        self._forward(self._ui_state_callback, state)

    def _on_camera_frame(self, frame: Any, result: TickResult) -> None:
        self._forward(self._ui_frame_callback, frame, result)

    def _on_achievement(self, achievement: Achievement) -> None:
        logger.info("achievement unlocked: %s", achievement.title)
        self._forward(self._ui_achievement_callback, achievement)

    @staticmethod
    def _forward(callback: Optional[Callable[..., None]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.warning("UI callback failed", exc_info=True)
