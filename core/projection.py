# core/projection.py
"""
Forward / back projection between geographic coordinates and local pixel
coordinates of the map view (Web Mercator, slippy-map zoom levels).
"""
import math

from pyproj import Transformer

from core.geometry import clamp_lat

TILE_SIZE = 256
# Circunferencia ecuatorial de EPSG:3857 en metros
MERCATOR_EXTENT = 2 * math.pi * 6378137.0
# Límite de latitud de Web Mercator
MAX_MERCATOR_LAT = 85.05112878


class MapProjection:
    def __init__(self, center_lat: float = 0.0, center_lng: float = 0.0,
                 zoom: float = 2.0, width: int = 800, height: int = 600):
        # WGS84 (lng, lat) <-> Web Mercator (x, y) en metros
        self._to_mercator = Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)
        self._to_geographic = Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)
        self.zoom = zoom
        self.width = width
        self.height = height
        self._center_x, self._center_y = self._mercator(center_lat, center_lng)

    def _mercator(self, lat: float, lng: float) -> tuple[float, float]:
        lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
        return self._to_mercator.transform(lng, lat)

    @property
    def resolution(self) -> float:
        """Metros de Mercator por píxel en el zoom actual."""
        return MERCATOR_EXTENT / (TILE_SIZE * 2 ** self.zoom)

    @property
    def center(self) -> tuple[float, float]:
        lng, lat = self._to_geographic.transform(self._center_x, self._center_y)
        return lat, lng

    def set_center(self, lat: float, lng: float):
        self._center_x, self._center_y = self._mercator(lat, lng)

    def to_screen(self, lat: float, lng: float) -> tuple[float, float]:
        mx, my = self._mercator(lat, lng)
        res = self.resolution
        x = self.width / 2 + (mx - self._center_x) / res
        y = self.height / 2 - (my - self._center_y) / res
        return x, y

    def from_screen(self, x: float, y: float) -> tuple[float, float]:
        res = self.resolution
        mx = self._center_x + (x - self.width / 2) * res
        my = self._center_y - (y - self.height / 2) * res
        lng, lat = self._to_geographic.transform(mx, my)
        return clamp_lat(lat), lng

    def pan(self, dx: float, dy: float):
        """Desplaza la vista ``dx``/``dy`` píxeles (arrastre del mapa)."""
        res = self.resolution
        self._center_x -= dx * res
        self._center_y += dy * res

    def zoom_at(self, x: float, y: float, delta: float, min_zoom: float = 1.0, max_zoom: float = 19.0):
        """Zoom anchored at pixel (x, y): that pixel keeps its geographic position."""
        new_zoom = max(min_zoom, min(max_zoom, self.zoom + delta))
        if new_zoom == self.zoom:
            return
        res_old = self.resolution
        anchor_x = self._center_x + (x - self.width / 2) * res_old
        anchor_y = self._center_y - (y - self.height / 2) * res_old
        self.zoom = new_zoom
        res_new = self.resolution
        self._center_x = anchor_x - (x - self.width / 2) * res_new
        self._center_y = anchor_y + (y - self.height / 2) * res_new

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height

    def bounds(self) -> tuple[float, float, float, float]:
        """Visible extent as (min_lat, max_lat, min_lng, max_lng)."""
        top_lat, left_lng = self.from_screen(0, 0)
        bottom_lat, right_lng = self.from_screen(self.width, self.height)
        return bottom_lat, top_lat, left_lng, right_lng
