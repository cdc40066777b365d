# detection/yolo_object_detector.py

from __future__ import annotations

import logging
from typing import Any, List

from ultralytics import YOLO

from detection.i_object_detector import IObjectDetector, RawDetection

logger = logging.getLogger(__name__)


class YoloObjectDetector(IObjectDetector):
    """
    COCO object detector backed by ultralytics YOLO.
    Class names ("cell phone", "laptop", "book", ...) line up with the
    distraction taxonomy.
    """

    def __init__(self, weights: str = "yolov8n.pt", *, min_confidence: float = 0.15) -> None:
        self.model = YOLO(weights)
        self.min_confidence = min_confidence
        logger.info("YOLO object detector ready (%s)", weights)

    def detect(self, frame: Any) -> List[RawDetection]:
        results = self.model(frame, conf=self.min_confidence, verbose=False)
        if not results:
            return []

        detections: List[RawDetection] = []
        result = results[0]
        for box in result.boxes:
            cls_id = int(box.cls[0])
            x1, y1, x2, y2 = (float(v) for v in box.xyxy[0].tolist())
            detections.append(
                RawDetection(
                    label=result.names[cls_id],
                    confidence=float(box.conf[0]),
                    bbox=(x1, y1, x2 - x1, y2 - y1),
                )
            )
        return detections
