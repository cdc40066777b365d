# tests/conftest.py

import threading

import pytest

from detection.head_pose import LEFT_EYE_OUTER, NOSE_TIP, RIGHT_EYE_OUTER
from detection.i_landmark_detector import FaceObservation, ILandmarkDetector, Landmark
from detection.i_object_detector import IObjectDetector, RawDetection
from detection.object_stabilizer import StabilizedDistraction
from detection.object_taxonomy import PriorityTier
from detection.temporal_smoother import SmoothedSignal

MESH_SIZE = 478
WALL_START = 1_700_000_000.0


def build_face(yaw=0.0, pitch=0.0, blendshapes=None):
    """
    Face mesh whose head pose estimate is exactly (yaw, pitch).
    Eyes sit at x=0.4 / 0.6, y=0.5; the nose is shifted from their
    midpoint by yaw/120 and pitch/120.
    """
    landmarks = [Landmark(0.5, 0.5)] * MESH_SIZE
    landmarks[LEFT_EYE_OUTER] = Landmark(0.4, 0.5)
    landmarks[RIGHT_EYE_OUTER] = Landmark(0.6, 0.5)
    landmarks[NOSE_TIP] = Landmark(0.5 + yaw / 120.0, 0.5 + pitch / 120.0)
    return FaceObservation(landmarks=landmarks, blendshapes=dict(blendshapes or {}))


class FakeObjectDetector(IObjectDetector):
    def __init__(self, results=None, error=None):
        self.results = list(results or [])
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.results:
            return self.results.pop(0)
        return []


class FakeLandmarkDetector(ILandmarkDetector):
    def __init__(self, face=None, error=None, block_first=False):
        self.face = face
        self.error = error
        self.calls = 0
        self.timestamps = []
        self.release = threading.Event()
        self._block_first = block_first

    def detect_for_frame(self, frame, timestamp_ms):
        self.calls += 1
        self.timestamps.append(timestamp_ms)
        if self._block_first and self.calls == 1:
            self.release.wait(5.0)
        if self.error is not None:
            raise self.error
        return self.face


class FakeCapture:
    def __init__(self, opened=True, frames=None):
        self.opened = opened
        self.frames = frames
        self.released = False
        self.props = {}
        self.reads = 0

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        self.reads += 1
        if self.frames is not None and self.reads > self.frames:
            return False, None
        return True, object()

    def release(self):
        self.released = True


@pytest.fixture
def face():
    return build_face


@pytest.fixture
def neutral():
    return SmoothedSignal()


@pytest.fixture
def phone():
    def _make(confidence=0.9, label="cell phone"):
        return RawDetection(label, confidence, (10.0, 20.0, 30.0, 40.0))
    return _make


@pytest.fixture
def stabilized_phone():
    return StabilizedDistraction(
        label="cell phone",
        tier=PriorityTier.CRITICAL,
        severity=1.0,
        confidence=0.87,
        bbox=(0.0, 0.0, 10.0, 10.0),
        consistency_count=2,
    )


@pytest.fixture
def wall_clock():
    return lambda: WALL_START
