# core/entities.py
"""
Entity data model: a closed set of geometry kinds, one dataclass per kind,
and the per-kind structural clone / translation helpers used by the
move tool.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class GeometryType(Enum):
    """Discriminador cerrado de tipos de entidad."""

    POINT = "Point"
    LINE = "Line"
    POLYGON = "Polygon"
    SECTOR = "Sector"
    TEXT = "Text"


@dataclass
class Coordinate:
    lat: float
    lng: float


@dataclass
class Vertex:
    """Vértice de una polilínea; la elevación llega de forma asíncrona."""

    lat: float
    lng: float
    elevation: Optional[float] = None


@dataclass
class PointEntity:
    id: str
    lat: float
    lng: float
    elevation: Optional[float] = None
    color: str = "black"
    symbol: str = "circle"
    generation: int = 0
    kind: GeometryType = field(default=GeometryType.POINT, init=False)


@dataclass
class LineEntity:
    id: str
    vertices: List[Vertex] = field(default_factory=list)
    color: str = "black"
    style: str = "solid"
    generation: int = 0
    kind: GeometryType = field(default=GeometryType.LINE, init=False)


@dataclass
class PolygonEntity:
    id: str
    vertices: List[Coordinate] = field(default_factory=list)
    color: str = "green"
    alpha: float = 0.25
    generation: int = 0
    kind: GeometryType = field(default=GeometryType.POLYGON, init=False)


@dataclass
class SectorEntity:
    id: str
    center: Coordinate
    radius: float = 0.0
    bearing: float = 0.0
    angle: float = 60.0
    elevation: Optional[float] = None
    color: str = "black"
    generation: int = 0
    kind: GeometryType = field(default=GeometryType.SECTOR, init=False)


@dataclass
class TextEntity:
    id: str
    lat: float
    lng: float
    text: str = ""
    color: str = "black"
    size: int = 14
    generation: int = 0
    kind: GeometryType = field(default=GeometryType.TEXT, init=False)


Entity = Union[PointEntity, LineEntity, PolygonEntity, SectorEntity, TextEntity]


def clone_entity(entity: Entity) -> Entity:
    """Copia estructural explícita por tipo (sin serializar)."""
    kind = entity.kind
    if kind == GeometryType.POINT:
        return PointEntity(entity.id, entity.lat, entity.lng, entity.elevation,
                           entity.color, entity.symbol, entity.generation)
    elif kind == GeometryType.TEXT:
        return TextEntity(entity.id, entity.lat, entity.lng, entity.text,
                          entity.color, entity.size, entity.generation)
    elif kind == GeometryType.SECTOR:
        return SectorEntity(entity.id, Coordinate(entity.center.lat, entity.center.lng),
                            entity.radius, entity.bearing, entity.angle,
                            entity.elevation, entity.color, entity.generation)
    elif kind == GeometryType.LINE:
        return LineEntity(entity.id,
                          [Vertex(v.lat, v.lng, v.elevation) for v in entity.vertices],
                          entity.color, entity.style, entity.generation)
    elif kind == GeometryType.POLYGON:
        return PolygonEntity(entity.id,
                             [Coordinate(v.lat, v.lng) for v in entity.vertices],
                             entity.color, entity.alpha, entity.generation)
    raise ValueError(f"Tipo de entidad desconocido: {kind}")


def translate_entity(target: Entity, origin: Entity, d_lat: float, d_lng: float) -> None:
    """
    Re-derive ``target`` coordinates from its ``origin`` snapshot shifted by
    (d_lat, d_lng). Lines and polygons pair origin vertex i with target
    vertex i, so both must have the same vertex count.
    """
    kind = target.kind
    if kind in (GeometryType.POINT, GeometryType.TEXT):
        target.lat = origin.lat + d_lat
        target.lng = origin.lng + d_lng
    elif kind == GeometryType.SECTOR:
        target.center.lat = origin.center.lat + d_lat
        target.center.lng = origin.center.lng + d_lng
    elif kind in (GeometryType.LINE, GeometryType.POLYGON):
        for vertex, start in zip(target.vertices, origin.vertices):
            vertex.lat = start.lat + d_lat
            vertex.lng = start.lng + d_lng
    else:
        raise ValueError(f"Tipo de entidad desconocido: {kind}")


def anchor_coordinates(entity: Entity) -> list[Coordinate]:
    """
    Coordenadas que definen la posición de la entidad: el punto ancla para
    puntos/textos/sectores, todos los vértices para líneas/polígonos.
    """
    kind = entity.kind
    if kind in (GeometryType.POINT, GeometryType.TEXT):
        return [Coordinate(entity.lat, entity.lng)]
    elif kind == GeometryType.SECTOR:
        return [Coordinate(entity.center.lat, entity.center.lng)]
    elif kind in (GeometryType.LINE, GeometryType.POLYGON):
        return [Coordinate(v.lat, v.lng) for v in entity.vertices]
    raise ValueError(f"Tipo de entidad desconocido: {kind}")
