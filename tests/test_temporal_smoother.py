import pytest

from detection.gaze_estimator import GazeSample
from detection.head_pose import PoseSample
from detection.temporal_smoother import PoseGazeSmoother, SmoothedSignal
from tracking.config import SmootherConfig


def test_empty_window_never_triggers():
    signal = PoseGazeSmoother().current()
    assert signal.pose_samples == 0
    assert not signal.head_away(25.0)
    assert not signal.eyes_closed(0.6)
    assert not signal.gaze_away(0.3)


def test_averages_over_window():
    smoother = PoseGazeSmoother()
    smoother.update(PoseSample(10.0, 0.0, 0.0), GazeSample(0.2, 0.0))
    signal = smoother.update(PoseSample(50.0, 0.0, 0.0), GazeSample(0.6, 1.0))
    assert signal.mean_yaw == pytest.approx(30.0)
    assert signal.mean_away == pytest.approx(0.4)
    assert signal.mean_closed == pytest.approx(0.5)
    assert signal.head_away(25.0)


def test_oldest_sample_is_evicted():
    smoother = PoseGazeSmoother(SmootherConfig(buffer_size=3))
    for yaw in (100.0, 0.0, 0.0, 0.0):
        signal = smoother.update(PoseSample(yaw, 0.0, 0.0))
    assert signal.pose_samples == 3
    assert signal.mean_yaw == pytest.approx(0.0)
    assert len(smoother) == 3


def test_averages_are_kept_without_new_samples():
    smoother = PoseGazeSmoother()
    smoother.update(PoseSample(40.0, 0.0, 0.0), GazeSample(0.0, 0.9))
    assert smoother.update() == smoother.current()
    assert smoother.current().mean_yaw == pytest.approx(40.0)
    assert smoother.current().eyes_closed(0.6)


def test_pose_and_gaze_windows_are_independent():
    smoother = PoseGazeSmoother()
    signal = smoother.update(PoseSample(5.0, 5.0, 0.0), None)
    assert signal.pose_samples == 1
    assert signal.gaze_samples == 0


def test_pitch_alone_counts_as_head_away():
    assert SmoothedSignal(mean_pitch=-30.0, pose_samples=1).head_away(25.0)


def test_clear():
    smoother = PoseGazeSmoother()
    smoother.update(PoseSample(1.0, 1.0, 1.0))
    smoother.clear()
    assert len(smoother) == 0
