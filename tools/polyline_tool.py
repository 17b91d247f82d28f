# tools/polyline_tool.py
from core.entities import GeometryType, LineEntity, Vertex
from core.geometry import format_distance, midpoint, polyline_length
from tools.base_tool import BaseTool


class PolylineTool(BaseTool):
    style_key = "line"
    kind = GeometryType.LINE

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        parts = cls._feature_parts(feature)
        return parts is not None and parts[0].get("type") == "LineString"

    def add(self, coord):
        position = self._coordinate(coord)
        if position is None:
            return
        lat, lng = position
        if self._draft is None:
            style = self.get_style_snapshot()
            self._draft = LineEntity(
                id=self._new_id(),
                color=style.get("color", "black"),
                style=style.get("style", "solid"),
            )
        vertex = Vertex(lat, lng)
        self._draft.vertices.append(vertex)

        def apply(value):
            vertex.elevation = value

        self._request_elevation(lat, lng, self._draft, apply)

    def is_valid_draft(self, draft) -> bool:
        return len(draft.vertices) >= 2

    def label_position(self, vertices) -> tuple[float, float]:
        """
        Punto medio del recorrido para la etiqueta: con un número par de
        vértices, el punto medio esférico de los dos centrales; si es
        impar, el vértice central.
        """
        n = len(vertices)
        if n % 2 == 0:
            return midpoint(vertices[n // 2 - 1], vertices[n // 2])
        middle = vertices[n // 2]
        return middle.lat, middle.lng

    def _draw_line(self, surface, line: LineEntity, extra=None):
        coords = list(line.vertices)
        if extra is not None:
            coords.append(extra)
        if len(coords) < 2:
            return
        screen = self._screen_points(surface, coords)
        surface.draw_polyline(screen, line.color, dashed=line.style == "dashed")

        length = polyline_length(coords)
        label_lat, label_lng = self.label_position(coords)
        x, y = surface.to_screen(label_lat, label_lng)
        surface.draw_label(x, y, [format_distance(length, self.distance_decimals)])

    def draw(self, surface):
        for line in self.items:
            self._draw_line(surface, line)
        if self._draft is not None:
            self._draw_line(surface, self._draft, self._hover)

    def to_features(self) -> list[dict]:
        features = []
        for line in self.items:
            features.append({
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[v.lng, v.lat] for v in line.vertices],
                },
                "properties": {
                    "color": line.color,
                    "style": line.style,
                    "distance": polyline_length(line.vertices),
                    "elevations": [v.elevation for v in line.vertices],
                },
            })
        return features

    def import_feature(self, feature: dict) -> bool:
        if not self.accepts(feature):
            return False
        properties = feature.get("properties") or {}
        elevations = properties.get("elevations") or []
        vertices = []
        for i, position in enumerate(feature["geometry"]["coordinates"]):
            elevation = elevations[i] if i < len(elevations) else None
            lat, lng = self._imported_position(position)
            vertices.append(Vertex(lat, lng, elevation))
        if len(vertices) < 2:
            return False
        self._commit(LineEntity(
            id=self._new_id(),
            vertices=vertices,
            color=properties.get("color") or "black",
            style=properties.get("style") or "solid",
        ))
        return True
