"""
Campus building table
Static positions of the buildings used on the open day. Events that name a
building but carry no coordinates are placed here.
"""

import logging
from typing import List, Optional

from ..schemas import BuildingInfo, Coordinates

logger = logging.getLogger(__name__)


def _building(id: str, name: str, short_name: str, lat: float, lon: float, address: str,
              campus: str, has_accessibility: bool = True, notes: Optional[str] = None) -> BuildingInfo:
    return BuildingInfo(
        id=id,
        name=name,
        short_name=short_name,
        coordinates=Coordinates(latitude=lat, longitude=lon),
        address=address,
        campus=campus,
        has_accessibility=has_accessibility,
        accessibility_notes=notes,
    )


CAMPUS_BUILDINGS: List[BuildingInfo] = [
    # Schloss (university)
    _building('schloss', 'Schloss Osnabrück', 'Schloss', 52.2728, 8.0432,
              'Neuer Graben 29, 49074 Osnabrück', 'schloss'),
    _building('uos-aula', 'Aula der Universität', 'Aula', 52.2725, 8.0438,
              'Neuer Graben 29, 49074 Osnabrück', 'schloss'),
    _building('seminarstrasse', 'Seminarstraße Gebäude', 'Seminar', 52.2718, 8.0445,
              'Seminarstraße 20, 49074 Osnabrück', 'schloss',
              has_accessibility=False, notes='Historisches Gebäude, eingeschränkter Zugang'),
    # Westerberg (university)
    _building('avz', 'AVZ (Allgemeines Verfügungszentrum)', 'AVZ', 52.2816, 8.0234,
              'Albrechtstraße 28, 49076 Osnabrück', 'westerberg'),
    _building('biologie', 'Biologiegebäude', 'Bio', 52.2802, 8.0241,
              'Barbarastraße 11, 49076 Osnabrück', 'westerberg'),
    _building('physik', 'Physikgebäude', 'Physik', 52.2821, 8.0252,
              'Barbarastraße 7, 49076 Osnabrück', 'westerberg'),
    _building('chemie', 'Chemiegebäude', 'Chemie', 52.2809, 8.0263,
              'Barbarastraße 7, 49076 Osnabrück', 'westerberg'),
    _building('mathematik', 'Mathematik/Informatik', 'Mathe/Info', 52.2827, 8.0239,
              'Albrechtstraße 28a, 49076 Osnabrück', 'westerberg'),
    _building('eihu', 'EIHU (Erweiterungsbau Informatik)', 'EIHU', 52.2831, 8.0227,
              'Wachsbleiche 27, 49076 Osnabrück', 'westerberg'),
    # Caprivi (Hochschule)
    _building('caprivi-a', 'Caprivistraße Gebäude A', 'CN-A', 52.2756, 8.0148,
              'Caprivistraße 30a, 49076 Osnabrück', 'caprivi'),
    _building('caprivi-b', 'Caprivistraße Gebäude B', 'CN-B', 52.2761, 8.0155,
              'Caprivistraße 30b, 49076 Osnabrück', 'caprivi'),
    _building('caprivi-c', 'Caprivistraße Gebäude C', 'CN-C', 52.2766, 8.0162,
              'Caprivistraße 30c, 49076 Osnabrück', 'caprivi'),
    _building('caprivi-mensa', 'Mensa Caprivi', 'Mensa CN', 52.2751, 8.0141,
              'Caprivistraße 30, 49076 Osnabrück', 'caprivi'),
    # Haste (Hochschule)
    _building('haste-a', 'Haste Gebäude A', 'HA-A', 52.3006, 7.9843,
              'Am Krümpel 31, 49090 Osnabrück', 'haste'),
    _building('haste-b', 'Haste Gebäude B', 'HA-B', 52.3011, 7.9851,
              'Am Krümpel 31, 49090 Osnabrück', 'haste'),
]


def find_building(id_or_name: str, buildings: Optional[List[BuildingInfo]] = None) -> Optional[BuildingInfo]:
    """Look up a building by id, short name, or part of its full name"""
    needle = (id_or_name or '').strip().lower()
    if not needle:
        return None
    buildings = CAMPUS_BUILDINGS if buildings is None else buildings

    for building in buildings:
        if building.id.lower() == needle:
            return building
    for building in buildings:
        if building.short_name and building.short_name.lower() == needle:
            return building
    for building in buildings:
        if needle in building.name.lower():
            return building
    return None


def find_building_by_name(name: Optional[str], buildings: Optional[List[BuildingInfo]] = None) -> Optional[BuildingInfo]:
    """
    Resolve a free-text building name as it appears on an event
    (e.g. "AVZ", "Physikgebäude, Hörsaal 2").
    """
    if not name:
        return None
    buildings = CAMPUS_BUILDINGS if buildings is None else buildings

    building = find_building(name, buildings)
    if building:
        return building

    # Event locations often append a room to the building name
    needle = name.strip().lower()
    tokens = needle.replace(',', ' ').split()
    first = tokens[0] if tokens else ''
    for building in buildings:
        if needle.startswith(building.name.lower()):
            return building
        if building.short_name and first == building.short_name.lower():
            return building

    logger.debug(f"No building matches {name!r}")
    return None
