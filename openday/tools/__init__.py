"""
Data sources for the engine: event catalog and campus buildings
"""

from .catalog import EventCatalog
from .buildings import CAMPUS_BUILDINGS, find_building, find_building_by_name

__all__ = [
    'EventCatalog',
    'CAMPUS_BUILDINGS',
    'find_building',
    'find_building_by_name',
]
