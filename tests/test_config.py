"""
Tests for configuration loading
"""

import pytest

from config.scoring_config import ScoringConfig
from openday.config import Config, get_config, reset_config
from openday.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


class TestConfig:
    """Test environment-driven configuration"""

    def test_defaults(self, monkeypatch):
        """Sensible defaults without any environment"""
        for name in ('PORT', 'WALKING_SPEED', 'BUFFER_MINUTES', 'MIN_WARNING_MINUTES', 'ENVIRONMENT', 'RATE_LIMIT'):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.server.port == 8000
        assert config.server.environment == 'development'
        assert config.travel.walking_speed == 'normal'
        assert config.travel.buffer_minutes == 5
        assert config.travel.min_warning_minutes == 3
        assert config.features.rate_limit == '100/minute'

    def test_environment_overrides(self, monkeypatch):
        """Values come from the environment"""
        monkeypatch.setenv('WALKING_SPEED', 'SLOW')
        monkeypatch.setenv('BUFFER_MINUTES', '8')
        monkeypatch.setenv('ENABLE_RATE_LIMITING', 'false')
        monkeypatch.setenv('ENVIRONMENT', 'production')

        config = Config()

        assert config.travel.walking_speed == 'slow'
        assert config.travel.buffer_minutes == 8
        assert config.features.enable_rate_limiting is False
        assert config.server.debug is False

    def test_invalid_integer(self, monkeypatch):
        """Non-numeric integers are rejected"""
        monkeypatch.setenv('BUFFER_MINUTES', 'five')
        with pytest.raises(ConfigurationError):
            Config()

    def test_negative_value(self, monkeypatch):
        """Values below their minimum are rejected"""
        monkeypatch.setenv('ALTERNATIVES_LIMIT', '0')
        with pytest.raises(ConfigurationError):
            Config()

    def test_invalid_walking_speed(self, monkeypatch):
        """Only known walking speeds are accepted"""
        monkeypatch.setenv('WALKING_SPEED', 'sprint')
        with pytest.raises(ConfigurationError):
            Config()

    def test_event_timezone(self, monkeypatch):
        """Event times default to Berlin; unknown zones are rejected"""
        monkeypatch.delenv('EVENT_TIMEZONE', raising=False)
        assert Config().engine.event_timezone == 'Europe/Berlin'

        monkeypatch.setenv('EVENT_TIMEZONE', 'Mars/Olympus')
        with pytest.raises(ConfigurationError):
            Config()

    def test_singleton(self):
        """get_config returns the same instance until reset"""
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first


class TestScoringConfig:
    """Test scoring parameters"""

    def test_default_weights_sum_to_100(self):
        """Default recommendation weights are balanced"""
        assert ScoringConfig.total_weight() == 100
        assert ScoringConfig.validate() is True

    def test_unbalanced_weights_warn(self):
        """Weights with another total are allowed but flagged"""
        class Tuned(ScoringConfig):
            STUDY_PROGRAM_WEIGHT = 50

        assert Tuned.validate() is False
        assert Tuned.get_config()['STUDY_PROGRAM_WEIGHT'] == 50

    def test_negative_weights_rejected(self):
        """Negative weights are invalid"""
        class Broken(ScoringConfig):
            POPULARITY_WEIGHT = -1

        with pytest.raises(ValueError):
            Broken.validate()

    def test_update_config(self):
        """Known keys update, unknown keys are ignored"""
        class Tunable(ScoringConfig):
            pass

        Tunable.update_config(VIEWED_PENALTY=8, NOT_A_SETTING=1)

        assert Tunable.VIEWED_PENALTY == 8
        assert ScoringConfig.VIEWED_PENALTY == 5
        assert not hasattr(Tunable, 'NOT_A_SETTING')
