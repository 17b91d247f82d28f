# tools/delete_tool.py
import logging

logger = logging.getLogger(__name__)


class DeleteTool:
    """Click to remove the first entity under the pointer."""

    is_meta_tool = True
    items = ()

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        return False

    def __init__(self, registry, hit_detector):
        self.registry = registry
        self.hit_detector = hit_detector

    def add(self, coord) -> bool:
        hit = self.hit_detector.pick_for_delete(coord, self.registry.get_drawing_tools())
        if hit is None:
            return False
        removed = hit.owner.remove_at(hit.index)
        if removed:
            logger.debug("Entidad %d eliminada de %s", hit.index, type(hit.owner).__name__)
        return removed

    def on_pointer_down(self, coord):
        pass

    def on_pointer_move(self, coord):
        pass

    def on_pointer_up(self, coord):
        pass

    def finish(self):
        pass

    def cancel(self):
        pass

    def is_drawing(self) -> bool:
        return False

    def item_count(self) -> int:
        return 0

    def clear(self):
        pass

    def draw(self, surface):
        pass

    def to_features(self) -> list[dict]:
        return []
