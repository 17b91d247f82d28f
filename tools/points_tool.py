# tools/points_tool.py
from core.entities import GeometryType, PointEntity
from tools.base_tool import BaseTool


class PointsTool(BaseTool):
    """Points commit on the first click; there is no draft phase."""

    style_key = "points"
    kind = GeometryType.POINT

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        parts = cls._feature_parts(feature)
        if parts is None:
            return False
        geometry, properties = parts
        return geometry.get("type") == "Point" and not properties.get("type")

    def add(self, coord):
        position = self._coordinate(coord)
        if position is None:
            return
        lat, lng = position
        style = self.get_style_snapshot()
        point = PointEntity(
            id=self._new_id(),
            lat=lat,
            lng=lng,
            elevation=None,
            color=style.get("color", "black"),
            symbol=style.get("symbol", "circle"),
        )
        self._commit(point)

        def apply(value):
            point.elevation = value

        self._request_elevation(lat, lng, point, apply)

    def draw(self, surface):
        for point in self.items:
            x, y = surface.to_screen(point.lat, point.lng)
            surface.draw_marker(x, y, point.symbol, point.color)
            label = f"{point.lat:.5f}, {point.lng:.5f}"
            if point.elevation is not None:
                label += f" | {point.elevation} m"
            surface.draw_text(x + 8, y + 6, label, "#000000", 12)

    def to_features(self) -> list[dict]:
        return [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [p.lng, p.lat]},
                "properties": {
                    "elevation": p.elevation,
                    "color": p.color,
                    "symbol": p.symbol,
                },
            }
            for p in self.items
        ]

    def import_feature(self, feature: dict) -> bool:
        if not self.accepts(feature):
            return False
        lat, lng = self._imported_position(feature["geometry"]["coordinates"])
        properties = feature.get("properties") or {}
        self._commit(PointEntity(
            id=self._new_id(),
            lat=lat,
            lng=lng,
            elevation=properties.get("elevation"),
            color=properties.get("color") or "black",
            symbol=properties.get("symbol") or "circle",
        ))
        return True
