# tools/text_tool.py
from core.entities import GeometryType, TextEntity
from tools.base_tool import BaseTool

DRAFT_OPACITY = 0.6


class TextTool(BaseTool):
    """
    Each click places a fresh draft; the text is filled in through
    ``set_text`` and only non-blank text is committed on ``finish``.
    """

    style_key = "text"
    kind = GeometryType.TEXT

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        parts = cls._feature_parts(feature)
        if parts is None:
            return False
        geometry, properties = parts
        return geometry.get("type") == "Point" and properties.get("type") == "text"

    def add(self, coord):
        position = self._coordinate(coord)
        if position is None:
            return
        lat, lng = position
        style = self.get_style_snapshot()
        self._draft = TextEntity(
            id=self._new_id(),
            lat=lat,
            lng=lng,
            text=style.get("text", ""),
            color=style.get("color", "black"),
            size=style.get("size", 14),
        )

    def set_text(self, value: str) -> bool:
        if self._draft is None:
            return False
        self._draft.text = value
        return True

    def is_valid_draft(self, draft) -> bool:
        return draft.text.strip() != ""

    def _draw_text(self, surface, entity: TextEntity, opacity: float = 1.0):
        if not entity.text:
            return
        x, y = surface.to_screen(entity.lat, entity.lng)
        surface.draw_text(x, y, entity.text, entity.color, entity.size, opacity=opacity)

    def draw(self, surface):
        for entity in self.items:
            self._draw_text(surface, entity)
        if self._draft is not None:
            self._draw_text(surface, self._draft, DRAFT_OPACITY)

    def to_features(self) -> list[dict]:
        return [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [t.lng, t.lat]},
                "properties": {
                    "type": "text",
                    "text": t.text,
                    "color": t.color,
                    "size": t.size,
                },
            }
            for t in self.items
        ]

    def import_feature(self, feature: dict) -> bool:
        if not self.accepts(feature):
            return False
        lat, lng = self._imported_position(feature["geometry"]["coordinates"])
        properties = feature["properties"]
        self._commit(TextEntity(
            id=self._new_id(),
            lat=lat,
            lng=lng,
            text=properties.get("text") or "",
            color=properties.get("color") or "black",
            size=int(properties.get("size") or 14),
        ))
        return True
