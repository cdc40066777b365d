# dashboard/main.py

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping, Optional, Tuple

from PyQt5.QtWidgets import QApplication, QMessageBox

from dashboard.study_dashboard import StudyDashboard
from detection.mediapipe_landmark_detector import MediaPipeLandmarkDetector
from detection.yolo_object_detector import YoloObjectDetector
from study.database import Database
from study.session_tracker import SessionTracker
from tracking.camera_monitor import CameraInitError
from tracking.config import TrackerConfig

logger = logging.getLogger(__name__)

DEFAULT_YOLO_WEIGHTS = "yolov8n.pt"
DEFAULT_FACE_MODEL = "face_landmarker.task"


def build_detectors(
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[YoloObjectDetector, MediaPipeLandmarkDetector]:
    """
    Load both models. Paths come from STUDYFOCUS_YOLO_WEIGHTS and
    STUDYFOCUS_FACE_MODEL. Any loading failure is raised as CameraInitError.
    """
    environ = os.environ if environ is None else environ
    weights = environ.get("STUDYFOCUS_YOLO_WEIGHTS", DEFAULT_YOLO_WEIGHTS)
    face_model = environ.get("STUDYFOCUS_FACE_MODEL", DEFAULT_FACE_MODEL)

    try:
        object_detector = YoloObjectDetector(weights)
        landmark_detector = MediaPipeLandmarkDetector(face_model)
    except Exception as e:
        logger.error("model initialization failed: %s", e)
        raise CameraInitError(f"cannot load detection models: {e}") from e
    return object_detector, landmark_detector


# ---------------------------------------------------
# MAIN ENTRY
# ---------------------------------------------------
def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = TrackerConfig.from_env()
    user_id = os.environ.get("STUDYFOCUS_USER", "student")

    app = QApplication(sys.argv)
    try:
        object_detector, landmark_detector = build_detectors()
    except CameraInitError as e:
        QMessageBox.critical(None, "Study Focus", str(e))
        sys.exit(1)

    db = Database()
    tracker = SessionTracker(
        db,
        config,
        object_detector=object_detector,
        landmark_detector=landmark_detector,
    )
    window = StudyDashboard(tracker, user_id)
    window.show()
    code = app.exec_()

    tracker.shutdown()
    landmark_detector.close()
    db.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
