"""
Configuration module for the Open Day planner
Provides centralized configuration for all scoring and planning parameters
"""

from .scoring_config import ScoringConfig

__all__ = ['ScoringConfig']
