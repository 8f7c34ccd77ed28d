"""
Recommendation and Schedule Scoring Configuration
Central place for every weight, penalty and threshold used by the engine
"""

import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)


class ScoringConfig:
    """
    Centralized configuration for all scoring parameters.
    Values are class attributes so they can be tuned at runtime or overridden
    by subclassing (tests do the latter).
    """

    # Recommendation reason weights (W1..W7), intended to sum to 100
    STUDY_PROGRAM_WEIGHT = 30
    EVENT_TYPE_WEIGHT = 15
    TIME_FIT_WEIGHT = 15
    POPULARITY_WEIGHT = 10
    DIVERSITY_WEIGHT = 10
    LOCATION_WEIGHT = 10
    NO_CONFLICT_WEIGHT = 10

    # Penalty for events the visitor has already looked at
    VIEWED_PENALTY = 5

    # Travel tolerance used when the context does not specify one (minutes)
    DEFAULT_MAX_TRAVEL_MINUTES = 15

    # High-demand events: popularity above this percentile of all events
    HIGH_DEMAND_PERCENTILE = 80

    # Grouping
    GROUP_MIN_SIZE = 2

    # Recommendation result size
    DEFAULT_LIMIT = 20

    # Popularity score: views count once, schedule adds ten times
    POPULARITY_VIEW_POINTS = 1
    POPULARITY_SCHEDULE_POINTS = 10
    POPULARITY_DIVISOR = 2
    TREND_RISING_CONVERSION = 0.25
    TREND_FALLING_MIN_VIEWS = 10

    # Schedule quality score
    SCHEDULE_BASE_SCORE = 100
    CONFLICT_PENALTY = 15
    IDLE_GAP_PENALTY = 5
    IDLE_GAP_THRESHOLD_MINUTES = 60
    DIVERSITY_PENALTY_MAX = 20

    # Operating hours of the open day
    DAY_START_HOUR = 8
    DAY_END_HOUR = 18

    # Optimization suggestions
    FILL_GAP_MIN_MINUTES = 45
    REDUCE_TRAVEL_MIN_IMPROVEMENT = 0.10
    RESOLVE_CONFLICT_BENEFIT = 30
    FILL_GAP_BENEFIT = 15
    ADD_DIVERSITY_BENEFIT = 10
    DIVERSITY_MIN_ITEMS = 2

    # Batch add / schedule defaults
    DEFAULT_PRIORITY = 1

    @classmethod
    def recommendation_weights(cls) -> Dict[str, float]:
        """Reason type -> configured weight"""
        return {
            'study_program': cls.STUDY_PROGRAM_WEIGHT,
            'event_type': cls.EVENT_TYPE_WEIGHT,
            'time_fit': cls.TIME_FIT_WEIGHT,
            'popularity': cls.POPULARITY_WEIGHT,
            'diversity': cls.DIVERSITY_WEIGHT,
            'location': cls.LOCATION_WEIGHT,
            'no_conflict': cls.NO_CONFLICT_WEIGHT,
        }

    @classmethod
    def total_weight(cls) -> float:
        return float(sum(cls.recommendation_weights().values()))

    @classmethod
    def validate(cls) -> bool:
        """
        Check weights are usable. Returns False (and logs) when they do not
        sum to 100; the scorer normalizes in that case.
        """
        weights = cls.recommendation_weights()
        negative = [k for k, v in weights.items() if v < 0]
        if negative:
            raise ValueError(f"Recommendation weights must be non-negative: {negative}")

        total = sum(weights.values())
        if total <= 0:
            raise ValueError("Recommendation weights must not all be zero")
        if total != 100:
            logger.warning(f"Recommendation weights sum to {total}, scores will be normalized")
            return False
        return True

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Get all configuration as a dictionary"""
        return {k: getattr(cls, k) for k in dir(cls)
                if k.isupper() and not callable(getattr(cls, k))}

    @classmethod
    def update_config(cls, **kwargs) -> None:
        """Update configuration values"""
        for key, value in kwargs.items():
            if hasattr(cls, key) and key.isupper():
                setattr(cls, key, value)
                logger.info(f"Updated {key} = {value}")
            else:
                logger.warning(f"Unknown config key: {key}")
