"""
Open Day Planner
Schedule conflict, travel feasibility and recommendation engine for a
multi-campus open day
"""

__version__ = "1.0.0"
