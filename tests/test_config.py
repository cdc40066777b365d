import pytest

from tracking.config import (
    AttentionConfig,
    ConfigurationError,
    ScoreConfig,
    SmootherConfig,
    StabilizerConfig,
    TrackerConfig,
)


def test_defaults():
    config = TrackerConfig()
    assert config.stabilizer.acceptance_threshold == 0.3
    assert config.stabilizer.buffer_size == 5
    assert config.stabilizer.min_consistency == 2
    assert config.smoother.buffer_size == 10
    assert config.attention.absence_timeout == 2.0
    assert config.score.distracted_weight == 2.0
    assert config.score.away_weight == 3.0
    assert config.score.hit_penalty_cap == 50.0
    assert config.score.event_penalty_cap == 30.0
    assert config.object_every_n_ticks == 2


def test_legacy_constants():
    legacy = ScoreConfig.legacy()
    assert (legacy.distracted_weight, legacy.away_weight) == (1.5, 2.0)
    assert legacy.hit_penalty == 5.0
    assert legacy.hit_penalty_cap is None
    assert legacy.event_penalty == 0.0
    assert legacy.empty_score == 100


@pytest.mark.parametrize(
    "factory",
    [
        lambda: StabilizerConfig(acceptance_threshold=1.5),
        lambda: StabilizerConfig(buffer_size=0),
        lambda: StabilizerConfig(buffer_size=3, min_consistency=4),
        lambda: SmootherConfig(buffer_size=0),
        lambda: AttentionConfig(absence_timeout=-1.0),
        lambda: AttentionConfig(eyes_closed_limit=2.0),
        lambda: ScoreConfig(distracted_weight=-0.5),
        lambda: ScoreConfig(hit_penalty_cap=-1.0),
        lambda: ScoreConfig(empty_score=101),
        lambda: TrackerConfig(object_every_n_ticks=0),
        lambda: TrackerConfig(model_timeout=0.0),
    ],
)
def test_invalid_values_raise(factory):
    with pytest.raises(ConfigurationError):
        factory()


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_from_env_overrides():
    config = TrackerConfig.from_env(
        {
            "STUDYFOCUS_ABSENCE_TIMEOUT": "3",
            "STUDYFOCUS_BUFFER_SIZE": "7",
            "STUDYFOCUS_MIN_CONSISTENCY": "3",
            "STUDYFOCUS_SMOOTHER_BUFFER_SIZE": "4",
            "STUDYFOCUS_HIT_PENALTY_CAP": "none",
            "STUDYFOCUS_OBJECT_EVERY_N_TICKS": "1",
            "UNRELATED": "x",
        }
    )
    assert config.attention.absence_timeout == 3.0
    assert config.stabilizer.buffer_size == 7
    assert config.stabilizer.min_consistency == 3
    assert config.smoother.buffer_size == 4
    assert config.score.hit_penalty_cap is None
    assert config.object_every_n_ticks == 1


def test_from_env_empty_gives_defaults():
    assert TrackerConfig.from_env({}) == TrackerConfig()


def test_from_env_legacy_profile():
    config = TrackerConfig.from_env(
        {"STUDYFOCUS_SCORE_PROFILE": "Legacy", "STUDYFOCUS_AWAY_WEIGHT": "2.5"}
    )
    assert config.score.distracted_weight == 1.5
    assert config.score.away_weight == 2.5


def test_from_env_custom_prefix():
    config = TrackerConfig.from_env({"APP_GAZE_AWAY_LIMIT": "0.4"}, prefix="APP_")
    assert config.attention.gaze_away_limit == 0.4


@pytest.mark.parametrize(
    "environ",
    [
        {"STUDYFOCUS_SCORE_PROFILE": "harsh"},
        {"STUDYFOCUS_BUFFER_SIZE": "five"},
        {"STUDYFOCUS_BUFFER_SIZE": "2.5"},
        {"STUDYFOCUS_ABSENCE_TIMEOUT": "-4"},
        {"STUDYFOCUS_DISTRACTED_WEIGHT": "none"},
    ],
)
def test_from_env_rejects_bad_values(environ):
    with pytest.raises(ConfigurationError):
        TrackerConfig.from_env(environ)
