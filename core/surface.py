# core/surface.py
"""Drawing contract the tools render through, plus label helpers."""
import math

Point = tuple[float, float]


class DrawingSurface:
    """
    Superficie de dibujo consumida por las herramientas. ``to_screen`` es
    la proyección directa lat/lng -> píxeles; los métodos ``draw_*``
    reciben coordenadas de pantalla.
    """

    def to_screen(self, lat: float, lng: float) -> Point:
        raise NotImplementedError

    def draw_marker(self, x: float, y: float, symbol: str, color: str):
        raise NotImplementedError

    def draw_polyline(self, points: list[Point], color: str, width: float = 2.0, dashed: bool = False):
        raise NotImplementedError

    def draw_polygon(self, points: list[Point], fill_color: str, alpha: float,
                     stroke_color: str | None = None, width: float = 2.0):
        raise NotImplementedError

    def draw_text(self, x: float, y: float, text: str, color: str, size: int, opacity: float = 1.0):
        raise NotImplementedError

    def draw_label(self, x: float, y: float, lines: list[str], *, rotation: float = 0.0,
                   background: str = "#e6ffffff", border: str = "#000000",
                   font_size: int = 12, bold: bool = False):
        """Label box centred on (x, y), rotated ``rotation`` degrees. Colours are ``#AARRGGBB``."""
        raise NotImplementedError


def upright_rotation(p1: Point, p2: Point) -> float:
    """
    Ángulo en grados del segmento p1->p2 en pantalla, girado 180° cuando
    su valor absoluto supera 90° para que el texto no quede invertido.
    """
    angle = math.degrees(math.atan2(p2[1] - p1[1], p2[0] - p1[0]))
    if abs(angle) > 90:
        angle += 180
    return angle
