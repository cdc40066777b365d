# tracking/session_pipeline.py

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from detection.gaze_estimator import estimate_gaze
from detection.head_pose import estimate_head_pose
from detection.i_landmark_detector import FaceObservation, ILandmarkDetector
from detection.i_object_detector import IObjectDetector, RawDetection
from detection.object_stabilizer import ObjectDetectionStabilizer, StabilizedDistraction
from detection.object_taxonomy import DistractionTaxonomy
from detection.temporal_smoother import PoseGazeSmoother, SmoothedSignal
from tracking.attention_state_machine import AttentionReading, AttentionStateMachine
from tracking.config import TrackerConfig
from tracking.focus_score_engine import Achievement, FocusScoreEngine
from tracking.i_attention_classifier import AttentionState
from tracking.session_summary import SessionSummary, build_summary

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """Lifecycle misuse: ticking before start / after end, ending twice."""


@dataclass(frozen=True)
class TickResult:
    index: int
    state: AttentionState
    reading: AttentionReading
    score: int
    face_detected: bool
    object_model_ran: bool
    smoothed: SmoothedSignal
    distraction: Optional[StabilizedDistraction]
    new_achievements: Tuple[Achievement, ...]
    tick_seconds: float


class StudySessionPipeline:
    """
    Everything one study session owns, wired in tick order:

        frame -> (object model, landmark model)
              -> (ObjectDetectionStabilizer, PoseGazeSmoother)
              -> AttentionStateMachine
              -> FocusScoreEngine

    - process_frame(frame) calls the model collaborators; a model that
      raises or times out counts as "nothing seen" for that tick.
    - process_signals(...) is the synchronous fusion step and can be
      driven directly (tests, replays).
    - All time is session time: paused spans are removed from both the
      score buckets and the absence timer.

    Calls are serialized by a lock, so tick i is fully applied before
    tick i+1 starts even if frames arrive from several threads.
    """

    def __init__(
        self,
        subject: str,
        config: Optional[TrackerConfig] = None,
        *,
        object_detector: Optional[IObjectDetector] = None,
        landmark_detector: Optional[ILandmarkDetector] = None,
        taxonomy: Optional[DistractionTaxonomy] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.subject = subject
        self.config = config or TrackerConfig()
        self.object_detector = object_detector
        self.landmark_detector = landmark_detector

        self.stabilizer = ObjectDetectionStabilizer(self.config.stabilizer, taxonomy)
        self.smoother = PoseGazeSmoother(self.config.smoother)
        self.state_machine = AttentionStateMachine(self.config.attention)
        self.score_engine = FocusScoreEngine(self.config.score)

        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()

        self._started_at: Optional[float] = None
        self._wall_started_at: Optional[float] = None
        self._paused_at: Optional[float] = None
        self._paused_total = 0.0
        self._last_session_time = 0.0
        self._tick_index = 0

        self._distraction: Optional[StabilizedDistraction] = None
        self._active_achievements: set = set()
        self._unlocked: Dict[str, Achievement] = {}
        self._summary: Optional[SessionSummary] = None
        self.last_result: Optional[TickResult] = None

        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._pending: Dict[str, Future] = {}

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def is_active(self) -> bool:
        return self._started_at is not None and self._summary is None

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    @property
    def state(self) -> AttentionState:
        return self.state_machine.state

    @property
    def summary(self) -> Optional[SessionSummary]:
        return self._summary

    @property
    def achievements(self) -> List[Achievement]:
        return list(self._unlocked.values())

    def start(self, now: Optional[float] = None) -> None:
        with self._lock:
            if self._summary is not None:
                raise SessionStateError("session already ended")
            if self._started_at is not None:
                raise SessionStateError("session already started")

            self._started_at = self._clock() if now is None else now
            self._wall_started_at = self._wall_clock()
            self.score_engine.start(self._wall_started_at)
            self.state_machine.reset(now=0.0)
            logger.info("study session started: %s", self.subject)

    def pause(self, now: Optional[float] = None) -> None:
        with self._lock:
            self._require_active()
            if self._paused_at is None:
                self._paused_at = self._clock() if now is None else now
                logger.info("study session paused: %s", self.subject)

    def resume(self, now: Optional[float] = None) -> None:
        with self._lock:
            self._require_active()
            if self._paused_at is None:
                return
            now = self._clock() if now is None else now
            self._paused_total += max(0.0, now - self._paused_at)
            self._paused_at = None
            logger.info("study session resumed: %s", self.subject)

    def end(self, now: Optional[float] = None) -> SessionSummary:
        """
        Freeze the session into a SessionSummary and release all buffers.
        """
        with self._lock:
            self._require_active()
            if self._paused_at is not None:
                self.resume(now)

            self._summary = build_summary(
                self.score_engine,
                self.subject,
                started_at=self._wall_started_at,
                ended_at=self._wall_clock(),
                achievements=self.achievements,
            )
            self.stabilizer.clear()
            self.smoother.clear()
            for executor in self._executors.values():
                executor.shutdown(wait=False)
            self._executors.clear()
            self._pending.clear()

            logger.info(
                "study session ended: %s score=%d (%d min)",
                self.subject,
                self._summary.focus_score,
                self._summary.duration_minutes,
            )
            return self._summary

    # ------------------------------------------------------------------ #
    # Ticks
    # ------------------------------------------------------------------ #

    def process_frame(self, frame: Any, now: Optional[float] = None) -> Optional[TickResult]:
        """
        Run the model collaborators on one frame and fuse the results.
        Returns None while paused.
        """
        with self._lock:
            self._require_active()
            if self._paused_at is not None:
                return None
            now = self._clock() if now is None else now

            detections: Optional[List[RawDetection]] = None
            if self.object_detector is not None and self._object_due():
                detections = self._call_model("object", self.object_detector.detect, frame) or []

            face: Optional[FaceObservation] = None
            if self.landmark_detector is not None:
                timestamp_ms = int(self._session_time(now) * 1000)
                face = self._call_model(
                    "landmark", self.landmark_detector.detect_for_frame, frame, timestamp_ms
                )

            return self.process_signals(detections, face, now)

    def process_signals(
        self,
        detections: Optional[Sequence[RawDetection]],
        face: Optional[FaceObservation],
        now: Optional[float] = None,
    ) -> Optional[TickResult]:
        """
        One fusion tick.

        detections: None when the object model did not run this tick
                    (throttled); [] when it ran and found nothing.
        face:       None when no face was seen.
        """
        with self._lock:
            self._require_active()
            if self._paused_at is not None:
                return None

            now = self._clock() if now is None else now
            session_time = self._session_time(now)
            tick_seconds = max(0.0, session_time - self._last_session_time)
            self._last_session_time = max(self._last_session_time, session_time)

            # object path
            object_model_ran = detections is not None
            if object_model_ran:
                previous = self._distraction
                self._distraction = self.stabilizer.ingest(detections)
                if _is_new_critical(previous, self._distraction):
                    self.score_engine.record_object_hit()

            # face path
            face_detected = face is not None
            if face_detected:
                smoothed = self.smoother.update(
                    estimate_head_pose(face.landmarks),
                    estimate_gaze(face.blendshapes),
                )
            else:
                smoothed = self.smoother.current()

            reading = self.state_machine.evaluate(face_detected, self._distraction, smoothed, session_time)

            self.score_engine.record_tick(reading.state, tick_seconds, self._wall_clock())
            new_achievements = self._new_achievements()

            result = TickResult(
                index=self._tick_index,
                state=reading.state,
                reading=reading,
                score=self.score_engine.score(),
                face_detected=face_detected,
                object_model_ran=object_model_ran,
                smoothed=smoothed,
                distraction=self._distraction,
                new_achievements=new_achievements,
                tick_seconds=tick_seconds,
            )
            self._tick_index += 1
            self.last_result = result
            return result

    # ------------------------------------------------------------------ #
    # Internal
    # ------------------------------------------------------------------ #

    def _require_active(self) -> None:
        if self._started_at is None:
            raise SessionStateError("session not started")
        if self._summary is not None:
            raise SessionStateError("session already ended")

    def _session_time(self, now: float) -> float:
        return max(0.0, now - self._started_at - self._paused_total)

    def _object_due(self) -> bool:
        return self._tick_index % self.config.object_every_n_ticks == 0

    def _call_model(self, kind: str, fn: Callable[..., Any], *args: Any) -> Any:
        """
        Run a model call on its own worker thread with a timeout.
        Errors, timeouts and a still-running previous call all mean
        "no result this tick".
        """
        pending = self._pending.get(kind)
        if pending is not None:
            if not pending.done():
                logger.debug("%s model still busy, skipping tick", kind)
                return None
            del self._pending[kind]

        executor = self._executors.get(kind)
        if executor is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{kind}-model")
            self._executors[kind] = executor

        future = executor.submit(fn, *args)
        try:
            return future.result(timeout=self.config.model_timeout)
        except FutureTimeout:
            self._pending[kind] = future
            logger.warning("%s model timed out after %.2fs", kind, self.config.model_timeout)
        except Exception as exc:
            logger.warning("%s model failed: %s", kind, exc)
        return None

    def _new_achievements(self) -> Tuple[Achievement, ...]:
        holding = self.score_engine.check_streaks()
        titles = {a.title for a in holding}
        fresh = tuple(a for a in holding if a.title not in self._active_achievements)
        self._active_achievements = titles
        for achievement in fresh:
            self._unlocked.setdefault(achievement.title, achievement)
        return fresh


def _is_new_critical(
    previous: Optional[StabilizedDistraction],
    current: Optional[StabilizedDistraction],
) -> bool:
    if current is None or not current.is_critical:
        return False
    if previous is None or not previous.is_critical:
        return True
    return previous.label != current.label
