# core/hit_detection.py
"""
Screen-space, tolerance-based picking over the entity collections of a
list of tools. The first tool (in caller order) and the first entity (in
collection order) that match win; there is no nearest-match resolution.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional

from core.entities import Entity, GeometryType
from core.geometry import distance_to_segment, lat_lng

DEFAULT_TOLERANCE = 8.0


@dataclass
class DeleteHit:
    """Herramienta propietaria e índice de la entidad alcanzada."""

    owner: Any
    index: int


@dataclass
class PickResult:
    entity: Entity
    tool: Any
    tool_name: str


@dataclass
class GeoBounds:
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


class HitDetector:
    def __init__(self, projection, tolerance: float = DEFAULT_TOLERANCE):
        # ``projection`` expone to_screen(lat, lng) -> (x, y)
        self.projection = projection
        self.tolerance = tolerance

    def set_tolerance(self, tolerance: float):
        self.tolerance = tolerance

    def get_tolerance(self) -> float:
        return self.tolerance

    def _screen(self, lat: float, lng: float) -> tuple[float, float]:
        return self.projection.to_screen(lat, lng)

    def pick(self, coord, tools) -> Optional[Entity]:
        """First entity under ``coord`` (lat, lng), or None."""
        mouse_px = self._screen(*lat_lng(coord))
        for tool in tools:
            for entity in tool.items:
                if self.hit_test(entity, mouse_px):
                    return entity
        return None

    def pick_for_delete(self, coord, tools) -> Optional[DeleteHit]:
        mouse_px = self._screen(*lat_lng(coord))
        for tool in tools:
            for index, entity in enumerate(tool.items):
                if self.hit_test(entity, mouse_px):
                    return DeleteHit(tool, index)
        return None

    def pick_all(self, coord, tools) -> List[PickResult]:
        mouse_px = self._screen(*lat_lng(coord))
        hits = []
        for tool in tools:
            for entity in tool.items:
                if self.hit_test(entity, mouse_px):
                    hits.append(PickResult(entity, tool, type(tool).__name__))
        return hits

    def pick_in_bounds(self, bounds: GeoBounds, tools) -> List[PickResult]:
        hits = []
        for tool in tools:
            for entity in tool.items:
                if self.is_in_bounds(entity, bounds):
                    hits.append(PickResult(entity, tool, type(tool).__name__))
        return hits

    # --- Pruebas de impacto por tipo ---
    def hit_test(self, entity: Entity, mouse_px: tuple[float, float]) -> bool:
        kind = entity.kind
        if kind in (GeometryType.POINT, GeometryType.TEXT):
            return self._hit_point(entity.lat, entity.lng, mouse_px)
        elif kind == GeometryType.SECTOR:
            # solo el centro; ni el contorno ni el interior de la cuña
            return self._hit_point(entity.center.lat, entity.center.lng, mouse_px)
        elif kind == GeometryType.LINE:
            return self._hit_path(entity.vertices, mouse_px, closed=False)
        elif kind == GeometryType.POLYGON:
            return self._hit_path(entity.vertices, mouse_px, closed=True)
        raise ValueError(f"Tipo de entidad desconocido: {kind}")

    def _hit_point(self, lat: float, lng: float, mouse_px) -> bool:
        x, y = self._screen(lat, lng)
        return math.hypot(mouse_px[0] - x, mouse_px[1] - y) < self.tolerance

    def _hit_path(self, vertices, mouse_px, closed: bool) -> bool:
        if len(vertices) < 2:
            return False
        screen = [self._screen(v.lat, v.lng) for v in vertices]
        segments = list(zip(screen, screen[1:]))
        if closed and len(screen) > 2:
            segments.append((screen[-1], screen[0]))
        for a, b in segments:
            if distance_to_segment(mouse_px, a, b) < self.tolerance:
                return True
        return False

    def is_in_bounds(self, entity: Entity, bounds: GeoBounds) -> bool:
        kind = entity.kind
        if kind in (GeometryType.POINT, GeometryType.TEXT):
            return bounds.contains(entity.lat, entity.lng)
        elif kind == GeometryType.SECTOR:
            return bounds.contains(entity.center.lat, entity.center.lng)
        elif kind in (GeometryType.LINE, GeometryType.POLYGON):
            return any(bounds.contains(v.lat, v.lng) for v in entity.vertices)
        raise ValueError(f"Tipo de entidad desconocido: {kind}")
