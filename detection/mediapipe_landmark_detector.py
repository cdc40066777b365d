# detection/mediapipe_landmark_detector.py

from __future__ import annotations

import logging
from typing import Any, Optional

import cv2
import mediapipe as mp
from mediapipe.tasks.python import BaseOptions, vision

from detection.i_landmark_detector import FaceObservation, ILandmarkDetector, Landmark

logger = logging.getLogger(__name__)


class MediaPipeLandmarkDetector(ILandmarkDetector):
    """
    MediaPipe FaceLandmarker in VIDEO mode: 478 landmarks + 52 blendshapes
    for the first face in the frame.

    model_path points at a face_landmarker.task bundle.
    """

    def __init__(self, model_path: str, *, min_confidence: float = 0.3) -> None:
        options = vision.FaceLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=min_confidence,
            min_face_presence_confidence=min_confidence,
            min_tracking_confidence=min_confidence,
            output_face_blendshapes=True,
        )
        self._landmarker = vision.FaceLandmarker.create_from_options(options)
        self._last_timestamp_ms = -1
        logger.info("FaceLandmarker ready (%s)", model_path)

    def detect_for_frame(self, frame: Any, timestamp_ms: int) -> Optional[FaceObservation]:
        # VIDEO mode rejects timestamps that do not increase
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self._landmarker.detect_for_video(image, timestamp_ms)

        if not result.face_landmarks:
            return None

        landmarks = [Landmark(lm.x, lm.y, lm.z) for lm in result.face_landmarks[0]]
        blendshapes = {}
        if result.face_blendshapes:
            blendshapes = {b.category_name: float(b.score) for b in result.face_blendshapes[0]}
        return FaceObservation(landmarks=landmarks, blendshapes=blendshapes)

    def close(self) -> None:
        self._landmarker.close()
