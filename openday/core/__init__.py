"""
Core engine components
Conflict detection, travel analysis, routing, recommendations and schedule optimization
"""

from .engine import OpenDayEngine, get_engine, set_engine
from .popularity import InMemoryPopularityStore, PopularityStore
from .recommender import RecommendationScorer
from .optimizer import ScheduleOptimizer

__all__ = [
    'OpenDayEngine',
    'get_engine',
    'set_engine',
    'InMemoryPopularityStore',
    'PopularityStore',
    'RecommendationScorer',
    'ScheduleOptimizer',
]
