# tools/sector_tool.py
"""
Two-click sector (wedge) tool: the first click fixes the centre, pointer
movement sets radius and bearing, the second click commits.
"""
from core.entities import Coordinate, GeometryType, SectorEntity
from core.geometry import (bearing, distance, format_area, format_distance,
                           project, sector_area, sector_coordinates)
from core.surface import upright_rotation
from tools.base_tool import BaseTool

SECTOR_FILL_ALPHA = 0.25
EDGE_LABEL_BACKGROUND = "#e6fff0f5"
CENTER_LABEL_BACKGROUND = "#f2ffffc8"
SUMMARY_LABEL_BACKGROUND = "#f2c8e6ff"
CENTER_LINE_COLOR = "#80000000"


class SectorTool(BaseTool):
    style_key = "sector"
    kind = GeometryType.SECTOR

    @classmethod
    def accepts(cls, feature: dict) -> bool:
        parts = cls._feature_parts(feature)
        if parts is None:
            return False
        geometry, properties = parts
        return geometry.get("type") == "Polygon" and properties.get("type") == "sector"

    def set_angle(self, degrees: float):
        """Cambia la apertura por defecto y la del borrador en curso."""
        self.style_manager.update_property(self.style_key, "angle", degrees)
        if self._draft is not None:
            self._draft.angle = degrees

    def add(self, coord):
        position = self._coordinate(coord)
        if position is None:
            return
        if self._draft is not None:
            # segundo clic: se confirma tal cual
            self._commit(self._draft)
            self._draft = None
            self._hover = None
            return

        lat, lng = position
        style = self.get_style_snapshot()
        sector = SectorEntity(
            id=self._new_id(),
            center=Coordinate(lat, lng),
            angle=style.get("angle", 60),
            color=style.get("color", "black"),
        )
        self._draft = sector

        def apply(value):
            sector.elevation = value

        self._request_elevation(lat, lng, sector, apply)

    def on_pointer_move(self, coord):
        if self._draft is None:
            return
        super().on_pointer_move(coord)
        center = self._draft.center
        self._draft.radius = distance(center, coord)
        self._draft.bearing = bearing(center, coord)

    def is_valid_draft(self, draft) -> bool:
        return draft.radius > 0

    # --- Dibujo ---
    def draw(self, surface):
        for sector in self.items:
            self._draw_sector(surface, sector)
            self._draw_measurements(surface, sector)
        if self._draft is not None and self._draft.radius > 0:
            self._draw_sector(surface, self._draft)
            self._draw_measurements(surface, self._draft)

    def _draw_sector(self, surface, sector: SectorEntity):
        ring = sector_coordinates(sector.center, sector.radius, sector.bearing, sector.angle)
        screen = [surface.to_screen(lat, lng) for lng, lat in ring]
        surface.draw_polygon(screen, sector.color, SECTOR_FILL_ALPHA, stroke_color=sector.color)

    def _draw_measurements(self, surface, sector: SectorEntity):
        if sector.radius == 0:
            return
        center = sector.center
        left = project(center, sector.radius, sector.bearing - sector.angle / 2)
        right = project(center, sector.radius, sector.bearing + sector.angle / 2)
        middle = project(center, sector.radius, sector.bearing)

        self._draw_edge_label(surface, center, left, "Línea 1", sector.color)
        self._draw_edge_label(surface, center, right, "Línea 2", sector.color)

        # línea central discontinua
        start_px = surface.to_screen(center.lat, center.lng)
        end_px = surface.to_screen(*middle)
        surface.draw_polyline([start_px, end_px], CENTER_LINE_COLOR, width=1.0, dashed=True)
        x, y = surface.to_screen(center.lat + (middle[0] - center.lat) * 0.5,
                                 center.lng + (middle[1] - center.lng) * 0.5)
        surface.draw_label(x, y, [f"Centro: {format_distance(sector.radius, 1)}"],
                           background=CENTER_LABEL_BACKGROUND, font_size=11, bold=True)

        x, y = start_px
        surface.draw_label(x, y, [
            f"R: {format_distance(sector.radius, 1)}",
            f"Área: {format_area(sector_area(sector.radius, sector.angle), 1)}",
            f"{sector.angle}°",
        ], background=SUMMARY_LABEL_BACKGROUND, font_size=11, bold=True)

    def _draw_edge_label(self, surface, center: Coordinate, end: tuple[float, float], text: str, color: str):
        length = distance(center, end)
        # al 70 % del borde, más cerca del arco
        x, y = surface.to_screen(center.lat + (end[0] - center.lat) * 0.7,
                                 center.lng + (end[1] - center.lng) * 0.7)
        rotation = upright_rotation(surface.to_screen(center.lat, center.lng), surface.to_screen(*end))
        surface.draw_label(x, y, [f"{text}: {format_distance(length, 1)}"], rotation=rotation,
                           background=EDGE_LABEL_BACKGROUND, border=color, font_size=11)

    # --- GeoJSON ---
    def to_features(self) -> list[dict]:
        features = []
        for s in self.items:
            ring = sector_coordinates(s.center, s.radius, s.bearing, s.angle)
            features.append({
                "type": "Feature",
                "geometry": {"type": "Polygon", "coordinates": [[list(p) for p in ring]]},
                "properties": {
                    "type": "sector",
                    "center": {"lat": s.center.lat, "lng": s.center.lng},
                    "radius": s.radius,
                    "bearing": s.bearing,
                    "angle": s.angle,
                    "elevation": s.elevation,
                    "color": s.color,
                    "area": sector_area(s.radius, s.angle),
                },
            })
        return features

    def import_feature(self, feature: dict) -> bool:
        if not self.accepts(feature):
            return False
        properties = feature["properties"]
        center = properties["center"]
        lat, lng = self._imported_position([center["lng"], center["lat"]])
        self._commit(SectorEntity(
            id=self._new_id(),
            center=Coordinate(lat, lng),
            radius=float(properties["radius"]),
            bearing=float(properties["bearing"]),
            angle=float(properties["angle"]),
            elevation=properties.get("elevation"),
            color=properties.get("color") or "black",
        ))
        return True
