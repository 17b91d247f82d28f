# tools/base_tool.py
"""
Common contract for the entity tools: draft/commit lifecycle, ownership of
committed ids in the central store, hover state and elevation patching.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from core.entities import Entity, GeometryType
from core.entity_store import EntityStore
from core.geometry import lat_lng
from core.styles import StyleManager

logger = logging.getLogger(__name__)


class BaseTool:
    # Clave de estilo en StyleManager y tipo de entidad que produce
    style_key: str = ""
    kind: Optional[GeometryType] = None
    is_meta_tool = False

    def __init__(self, style_manager: StyleManager, store: EntityStore, elevation=None,
                 on_change: Optional[Callable[[], None]] = None,
                 discard_stale_elevation: bool = False, distance_decimals: int = 2):
        self.style_manager = style_manager
        self.store = store
        # colaborador con lookup_async(lat, lng, callback)
        self.elevation = elevation
        self.on_change = on_change
        self.discard_stale_elevation = discard_stale_elevation
        self.distance_decimals = distance_decimals
        self._ids: List[str] = []
        self._draft: Optional[Entity] = None
        self._hover: Optional[tuple[float, float]] = None

    # --- Ciclo de vida ---
    def add(self, coord):
        raise NotImplementedError("add() debe implementarse en la subclase")

    def is_valid_draft(self, draft: Entity) -> bool:
        return True

    def finish(self):
        """Commit the draft if it is valid, otherwise drop it. Hover is always cleared."""
        if self._draft is not None and self.is_valid_draft(self._draft):
            self._commit(self._draft)
        self._draft = None
        self._hover = None

    def cancel(self):
        self._draft = None
        self._hover = None

    def on_pointer_down(self, coord):
        pass

    def on_pointer_move(self, coord):
        if self._draft is not None:
            self._hover = lat_lng(coord)

    def on_pointer_up(self, coord):
        pass

    def draw(self, surface):
        raise NotImplementedError("draw() debe implementarse en la subclase")

    # --- Intercambio GeoJSON ---
    @classmethod
    def accepts(cls, feature: dict) -> bool:
        return False

    @staticmethod
    def _feature_parts(feature) -> Optional[tuple[dict, dict]]:
        """(geometry, properties) de una geometría GeoJSON, o None si no son objetos."""
        if not isinstance(feature, dict):
            return None
        geometry = feature.get("geometry")
        properties = feature.get("properties")
        if properties is None:
            properties = {}
        if not isinstance(geometry, dict) or not isinstance(properties, dict):
            return None
        return geometry, properties

    def to_features(self) -> list[dict]:
        return []

    def import_feature(self, feature: dict) -> bool:
        raise NotImplementedError

    def _imported_position(self, position) -> tuple[float, float]:
        """[lng, lat] de GeoJSON a (lat, lng); ValueError si queda fuera de rango."""
        lat, lng = float(position[1]), float(position[0])
        if not self.is_valid_coordinate(lat, lng):
            raise ValueError(f"coordenada fuera de rango ({lat}, {lng})")
        return lat, lng

    # --- Colección ---
    @property
    def items(self) -> List[Entity]:
        return [self.store.get(entity_id) for entity_id in self._ids]

    @property
    def draft(self) -> Optional[Entity]:
        return self._draft

    @property
    def hover(self) -> Optional[tuple[float, float]]:
        return self._hover

    def is_drawing(self) -> bool:
        return self._draft is not None

    def item_count(self) -> int:
        return len(self._ids)

    def remove_at(self, index: int) -> bool:
        if index < 0 or index >= len(self._ids):
            return False
        entity_id = self._ids.pop(index)
        self.store.remove(entity_id)
        return True

    def clear(self):
        """Vacía la colección y descarta el borrador pendiente."""
        for entity_id in self._ids:
            self.store.remove(entity_id)
        self._ids.clear()
        self.cancel()

    # --- Auxiliares ---
    def get_style_snapshot(self) -> dict:
        return self.style_manager.get_style(self.style_key)

    def is_valid_coordinate(self, lat: float, lng: float) -> bool:
        if lat != lat or lng != lng:  # NaN
            return False
        return -90 <= lat <= 90 and -180 <= lng <= 180

    def _coordinate(self, coord) -> Optional[tuple[float, float]]:
        try:
            lat, lng = lat_lng(coord)
        except (AttributeError, TypeError, ValueError, IndexError):
            logger.warning("%s: coordenada inválida %r", type(self).__name__, coord)
            return None
        if not self.is_valid_coordinate(lat, lng):
            logger.warning("%s: coordenada fuera de rango (%s, %s)", type(self).__name__, lat, lng)
            return None
        return lat, lng

    def _new_id(self) -> str:
        return self.store.next_id(self.kind)

    def _commit(self, entity: Entity):
        self.store.add(entity)
        self._ids.append(entity.id)

    def _is_live(self, entity: Entity, generation: int) -> bool:
        return entity is self._draft or self.store.is_current(entity, generation)

    def _request_elevation(self, lat: float, lng: float, owner: Entity, apply: Callable[[float], None]):
        """
        Lanza una consulta de elevación sin esperar; ``apply`` escribe el
        resultado en el objeto que la pidió cuando llegue.
        """
        if self.elevation is None:
            return
        generation = owner.generation

        def on_result(value: float):
            if self.discard_stale_elevation and not self._is_live(owner, generation):
                logger.debug("Elevación descartada para %s (entidad obsoleta)", owner.id)
                return
            apply(value)
            if self.on_change is not None:
                self.on_change()

        self.elevation.lookup_async(lat, lng, on_result)

    @staticmethod
    def _screen_points(surface, coords) -> list[tuple[float, float]]:
        return [surface.to_screen(*lat_lng(c)) for c in coords]
