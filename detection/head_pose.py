# detection/head_pose.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from detection.i_landmark_detector import Landmark


# Face mesh indices used for the pose estimate
NOSE_TIP = 1
LEFT_EYE_OUTER = 33
RIGHT_EYE_OUTER = 263
LEFT_EAR = 234
RIGHT_EAR = 454

# scale from normalized landmark offsets to degree-like units
ANGLE_SCALE = 120.0
ROLL_SCALE = 100.0


@dataclass(frozen=True)
class PoseSample:
    yaw: float
    pitch: float
    roll: float


def estimate_head_pose(landmarks: Sequence[Landmark]) -> PoseSample:
    """
    Cheap head pose from five landmarks.

    yaw   -> horizontal offset of the nose tip from the eye midpoint
    pitch -> vertical offset of the nose tip from the eye midpoint
    roll  -> horizontal ear span

    Returns a neutral pose when the mesh is too short to contain the
    required points.
    """
    needed = max(NOSE_TIP, LEFT_EYE_OUTER, RIGHT_EYE_OUTER, LEFT_EAR, RIGHT_EAR)
    if len(landmarks) <= needed:
        return PoseSample(0.0, 0.0, 0.0)

    nose = landmarks[NOSE_TIP]
    left_eye = landmarks[LEFT_EYE_OUTER]
    right_eye = landmarks[RIGHT_EYE_OUTER]
    left_ear = landmarks[LEFT_EAR]
    right_ear = landmarks[RIGHT_EAR]

    eye_mid_x = (left_eye.x + right_eye.x) / 2.0
    eye_mid_y = (left_eye.y + right_eye.y) / 2.0

    return PoseSample(
        yaw=(nose.x - eye_mid_x) * ANGLE_SCALE,
        pitch=(nose.y - eye_mid_y) * ANGLE_SCALE,
        roll=(right_ear.x - left_ear.x) * ROLL_SCALE,
    )
