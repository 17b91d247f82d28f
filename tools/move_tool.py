# tools/move_tool.py
import logging

from core.entities import clone_entity, translate_entity
from core.geometry import lat_lng

logger = logging.getLogger(__name__)


class MoveTool:
    """
    Drag an entity owned by any drawing tool. Every pointer move re-derives
    the position from the snapshot taken at drag start, so deltas never
    accumulate.
    """

    is_meta_tool = True
    items = ()

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        return False

    def __init__(self, registry, hit_detector, store):
        self.registry = registry
        self.hit_detector = hit_detector
        self.store = store
        self._target = None
        self._origin = None
        self._start = None

    @property
    def target(self):
        return self._target

    def is_dragging(self) -> bool:
        return self._target is not None

    def on_pointer_down(self, coord):
        hit = self.hit_detector.pick(coord, self.registry.get_drawing_tools())
        if hit is None:
            return
        self._target = hit
        self._origin = clone_entity(hit)
        self._start = lat_lng(coord)
        # las elevaciones pendientes ya no corresponden a esta posición
        self.store.bump_generation(hit.id)
        logger.debug("Arrastrando %s", hit.id)

    def on_pointer_move(self, coord):
        if self._target is None:
            return
        lat, lng = lat_lng(coord)
        translate_entity(self._target, self._origin, lat - self._start[0], lng - self._start[1])

    def on_pointer_up(self, coord):
        self.finish()

    def finish(self):
        self._target = None
        self._origin = None
        self._start = None

    def cancel(self):
        self.finish()

    def add(self, coord):
        pass

    def is_drawing(self) -> bool:
        return False

    def item_count(self) -> int:
        return 0

    def clear(self):
        self.finish()

    def draw(self, surface):
        pass

    def to_features(self) -> list[dict]:
        return []
