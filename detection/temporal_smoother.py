# detection/temporal_smoother.py

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from detection.gaze_estimator import GazeSample
from detection.head_pose import PoseSample
from tracking.config import SmootherConfig


@dataclass(frozen=True)
class SmoothedSignal:
    """
    Running averages over the pose / gaze windows.
    *_samples tell how many samples the averages are built from;
    an empty window never triggers a condition.
    """
    mean_yaw: float = 0.0
    mean_pitch: float = 0.0
    mean_roll: float = 0.0
    mean_away: float = 0.0
    mean_closed: float = 0.0
    pose_samples: int = 0
    gaze_samples: int = 0

    def head_away(self, angle_limit: float) -> bool:
        if self.pose_samples == 0:
            return False
        return abs(self.mean_yaw) > angle_limit or abs(self.mean_pitch) > angle_limit

    def eyes_closed(self, closed_limit: float) -> bool:
        return self.gaze_samples > 0 and self.mean_closed > closed_limit

    def gaze_away(self, away_limit: float) -> bool:
        return self.gaze_samples > 0 and self.mean_away > away_limit


class PoseGazeSmoother:
    """
    Two fixed-size FIFO windows (head pose, gaze/eyes).

    Samples are only pushed on ticks where a face was seen. A tick
    without a face leaves both windows untouched, so the averages stay at
    their last values until the face comes back.
    """

    def __init__(self, config: Optional[SmootherConfig] = None) -> None:
        self.config = config or SmootherConfig()
        self._poses: Deque[PoseSample] = deque(maxlen=self.config.buffer_size)
        self._gazes: Deque[GazeSample] = deque(maxlen=self.config.buffer_size)

    def update(
        self,
        pose: Optional[PoseSample] = None,
        gaze: Optional[GazeSample] = None,
    ) -> SmoothedSignal:
        if pose is not None:
            self._poses.append(pose)
        if gaze is not None:
            self._gazes.append(gaze)
        return self.current()

    def current(self) -> SmoothedSignal:
        poses = self._poses
        gazes = self._gazes

        if poses:
            n = len(poses)
            mean_yaw = sum(p.yaw for p in poses) / n
            mean_pitch = sum(p.pitch for p in poses) / n
            mean_roll = sum(p.roll for p in poses) / n
        else:
            mean_yaw = mean_pitch = mean_roll = 0.0

        if gazes:
            n = len(gazes)
            mean_away = sum(g.away_score for g in gazes) / n
            mean_closed = sum(g.closed_score for g in gazes) / n
        else:
            mean_away = mean_closed = 0.0

        return SmoothedSignal(
            mean_yaw=mean_yaw,
            mean_pitch=mean_pitch,
            mean_roll=mean_roll,
            mean_away=mean_away,
            mean_closed=mean_closed,
            pose_samples=len(poses),
            gaze_samples=len(gazes),
        )

    def clear(self) -> None:
        self._poses.clear()
        self._gazes.clear()

    def __len__(self) -> int:
        return max(len(self._poses), len(self._gazes))
