# tools/polygon_tool.py
from core.entities import Coordinate, GeometryType, PolygonEntity
from core.geometry import (distance, format_area, format_distance, midpoint,
                           polygon_area, polygon_center)
from core.surface import upright_rotation
from tools.base_tool import BaseTool

SEGMENT_LABEL_BACKGROUND = "#d9ffffff"
AREA_LABEL_BACKGROUND = "#f2ffffc8"


class PolygonTool(BaseTool):
    style_key = "polygon"
    kind = GeometryType.POLYGON

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        parts = cls._feature_parts(feature)
        if parts is None:
            return False
        geometry, properties = parts
        return geometry.get("type") == "Polygon" and properties.get("type") != "sector"

    def add(self, coord):
        position = self._coordinate(coord)
        if position is None:
            return
        lat, lng = position
        if self._draft is None:
            style = self.get_style_snapshot()
            self._draft = PolygonEntity(
                id=self._new_id(),
                color=style.get("color", "green"),
                alpha=style.get("alpha", 0.25),
            )
        self._draft.vertices.append(Coordinate(lat, lng))

    def is_valid_draft(self, draft) -> bool:
        return len(draft.vertices) >= 3

    def _draw_polygon(self, surface, polygon: PolygonEntity, extra=None):
        coords = list(polygon.vertices)
        if extra is not None:
            coords.append(Coordinate(*extra))
        if len(coords) < 2:
            return
        screen = self._screen_points(surface, coords)
        surface.draw_polygon(screen, polygon.color, polygon.alpha, stroke_color=polygon.color)
        self._draw_segment_labels(surface, coords)

        if len(coords) >= 3:
            c_lat, c_lng = polygon_center(coords)
            x, y = surface.to_screen(c_lat, c_lng)
            surface.draw_label(x, y, [format_area(polygon_area(coords))],
                               background=AREA_LABEL_BACKGROUND, font_size=13, bold=True)

    def _draw_segment_labels(self, surface, coords):
        n = len(coords)
        for i in range(n):
            # con solo dos vértices no hay segmento de cierre
            if n == 2 and i == 1:
                break
            a = coords[i]
            b = coords[(i + 1) % n]
            m_lat, m_lng = midpoint(a, b)
            x, y = surface.to_screen(m_lat, m_lng)
            rotation = upright_rotation(surface.to_screen(a.lat, a.lng),
                                        surface.to_screen(b.lat, b.lng))
            surface.draw_label(x, y, [format_distance(distance(a, b), self.distance_decimals)],
                               rotation=rotation, background=SEGMENT_LABEL_BACKGROUND,
                               border="#666666", font_size=11)

    def draw(self, surface):
        for polygon in self.items:
            self._draw_polygon(surface, polygon)
        if self._draft is not None:
            self._draw_polygon(surface, self._draft, self._hover)

    def to_features(self) -> list[dict]:
        features = []
        for polygon in self.items:
            ring = [[v.lng, v.lat] for v in polygon.vertices]
            ring.append(list(ring[0]))
            features.append({
                "type": "Feature",
                "geometry": {"type": "Polygon", "coordinates": [ring]},
                "properties": {
                    "color": polygon.color,
                    "alpha": polygon.alpha,
                    "area": polygon_area(polygon.vertices),
                },
            })
        return features

    def import_feature(self, feature: dict) -> bool:
        if not self.accepts(feature):
            return False
        ring = feature["geometry"]["coordinates"][0]
        vertices = [Coordinate(*self._imported_position(p)) for p in ring]
        if len(vertices) > 1 and vertices[0] == vertices[-1]:
            vertices.pop()
        if len(vertices) < 3:
            return False
        properties = feature.get("properties") or {}
        alpha = properties.get("alpha")
        self._commit(PolygonEntity(
            id=self._new_id(),
            vertices=vertices,
            color=properties.get("color") or "green",
            alpha=0.25 if alpha is None else alpha,
        ))
        return True
