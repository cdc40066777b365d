from detection.temporal_smoother import SmoothedSignal
from tracking.attention_state_machine import AttentionStateMachine, Reason, classify_attention
from tracking.config import AttentionConfig
from tracking.i_attention_classifier import AttentionState

CONFIG = AttentionConfig()
TURNED = SmoothedSignal(mean_yaw=40.0, pose_samples=5)
CLOSED = SmoothedSignal(mean_closed=0.9, gaze_samples=5)
LOOKING_AWAY = SmoothedSignal(mean_away=0.5, gaze_samples=5)


def test_focused_by_default(neutral):
    reading = classify_attention(True, 0.0, None, neutral, CONFIG)
    assert reading.state is AttentionState.FOCUSED
    assert reading.reason == Reason.FOCUSED
    assert reading.alerts == ()


def test_absence_beats_everything(stabilized_phone):
    reading = classify_attention(False, 2.5, stabilized_phone, TURNED, CONFIG)
    assert reading.state is AttentionState.AWAY
    assert reading.reason == Reason.NO_FACE
    assert reading.alerts[0].message == "No face detected"


def test_eyes_closed_is_away_and_beats_head_turn():
    signal = SmoothedSignal(mean_yaw=40.0, mean_closed=0.9, pose_samples=3, gaze_samples=3)
    reading = classify_attention(True, 0.0, None, signal, CONFIG)
    assert reading.state is AttentionState.AWAY
    assert reading.reason == Reason.EYES_CLOSED


def test_head_turn_beats_object(stabilized_phone):
    reading = classify_attention(True, 0.0, stabilized_phone, TURNED, CONFIG)
    assert reading.state is AttentionState.DISTRACTED
    assert reading.reason == Reason.HEAD_TURNED
    assert [a.type for a in reading.alerts] == ["warning", "phone"]


def test_gaze_away_is_distracted():
    reading = classify_attention(True, 0.0, None, LOOKING_AWAY, CONFIG)
    assert reading.state is AttentionState.DISTRACTED
    assert reading.reason == Reason.GAZE_AWAY


def test_object_alone_is_distracted(neutral, stabilized_phone):
    reading = classify_attention(True, 0.0, stabilized_phone, neutral, CONFIG)
    assert reading.state is AttentionState.DISTRACTED
    assert reading.reason == Reason.OBJECT
    assert reading.alerts[-1].message == "CELL PHONE DETECTED (87%)"


def test_missing_face_within_timeout_uses_remaining_rules(neutral):
    reading = classify_attention(False, 1.0, None, neutral, CONFIG)
    assert reading.state is AttentionState.FOCUSED


def test_away_only_after_timeout_is_exceeded(neutral):
    machine = AttentionStateMachine(AttentionConfig(absence_timeout=2.0))
    machine.reset(now=0.0)

    assert machine.tick(True, None, neutral, 0.0) is AttentionState.FOCUSED
    assert machine.tick(False, None, neutral, 1.0) is AttentionState.FOCUSED
    assert machine.tick(False, None, neutral, 2.0) is AttentionState.FOCUSED
    assert machine.tick(False, None, neutral, 2.01) is AttentionState.AWAY
    assert machine.last_transition_at == 2.01


def test_face_return_resets_absence_timer(neutral):
    machine = AttentionStateMachine()
    machine.reset(now=0.0)
    machine.tick(False, None, neutral, 3.0)
    assert machine.state is AttentionState.AWAY

    assert machine.tick(True, None, neutral, 3.5) is AttentionState.FOCUSED
    assert machine.seconds_without_face(4.0) == 0.5


def test_transition_events_count_leaving_focused(neutral):
    machine = AttentionStateMachine()
    machine.reset(now=0.0)
    machine.tick(True, None, TURNED, 1.0)        # focused -> distracted
    machine.tick(True, None, CLOSED, 2.0)        # distracted -> away
    machine.tick(True, None, neutral, 3.0)       # away -> focused
    machine.tick(True, None, LOOKING_AWAY, 4.0)  # focused -> distracted
    assert machine.transition_events == 2
    assert machine.last_reading.reason == Reason.GAZE_AWAY


def test_reset_returns_to_focused(neutral):
    machine = AttentionStateMachine()
    machine.tick(True, None, TURNED, 1.0)
    machine.reset()
    assert machine.state is AttentionState.FOCUSED
    assert machine.transition_events == 0
