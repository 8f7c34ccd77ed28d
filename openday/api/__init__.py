"""
REST API for the Open Day planner
"""

from .app import create_app

__all__ = ['create_app']
