import logging

from PySide6.QtCore import Qt, QPointF, QRectF, Signal
from PySide6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPainterPath, QPen, QPolygonF
from PySide6.QtWidgets import QWidget

from core.surface import DrawingSurface

logger = logging.getLogger(__name__)

# píxeles que el puntero puede desplazarse entre pulsar y soltar para contar como clic
CLICK_SLOP = 4
LABEL_PADDING = 4


class QtPainterSurface(DrawingSurface):
    def __init__(self, painter: QPainter, projection):
        self.painter = painter
        self.projection = projection

    def to_screen(self, lat: float, lng: float):
        return self.projection.to_screen(lat, lng)

    def draw_marker(self, x, y, symbol, color):
        p = self.painter
        p.save()
        p.setPen(Qt.NoPen)
        p.setBrush(QBrush(QColor(color)))
        if symbol == "square":
            p.drawRect(QRectF(x - 4, y - 4, 8, 8))
        elif symbol == "triangle":
            p.drawPolygon(QPolygonF([QPointF(x, y - 5), QPointF(x + 5, y + 4), QPointF(x - 5, y + 4)]))
        else:
            p.drawEllipse(QPointF(x, y), 4, 4)
        p.restore()

    def draw_polyline(self, points, color, width=2.0, dashed=False):
        if len(points) < 2:
            return
        path = QPainterPath(QPointF(*points[0]))
        for x, y in points[1:]:
            path.lineTo(x, y)
        pen = QPen(QColor(color), width)
        if dashed:
            pen.setDashPattern([4, 3])
        self.painter.save()
        self.painter.setPen(pen)
        self.painter.setBrush(Qt.NoBrush)
        self.painter.drawPath(path)
        self.painter.restore()

    def draw_polygon(self, points, fill_color, alpha, stroke_color=None, width=2.0):
        if len(points) < 2:
            return
        path = QPainterPath(QPointF(*points[0]))
        for x, y in points[1:]:
            path.lineTo(x, y)
        path.closeSubpath()
        fill = QColor(fill_color)
        fill.setAlphaF(alpha)
        self.painter.save()
        self.painter.setPen(QPen(QColor(stroke_color or fill_color), width))
        self.painter.setBrush(QBrush(fill))
        self.painter.drawPath(path)
        self.painter.restore()

    def draw_text(self, x, y, text, color, size, opacity=1.0):
        p = self.painter
        p.save()
        p.setOpacity(opacity)
        font = QFont()
        font.setPixelSize(int(size))
        p.setFont(font)
        p.setPen(QColor(color))
        # (x, y) es la esquina superior del texto
        p.drawText(QPointF(x, y + QFontMetricsF(font).ascent()), text)
        p.restore()

    def draw_label(self, x, y, lines, *, rotation=0.0, background="#e6ffffff", border="#000000",
                   font_size=12, bold=False):
        p = self.painter
        font = QFont("monospace")
        font.setPixelSize(font_size)
        font.setBold(bold)
        metrics = QFontMetricsF(font)
        line_height = metrics.height()
        width = max(metrics.horizontalAdvance(line) for line in lines) + LABEL_PADDING * 2
        height = line_height * len(lines) + LABEL_PADDING

        p.save()
        p.translate(x, y)
        p.rotate(rotation)
        rect = QRectF(-width / 2, -height / 2, width, height)
        p.setPen(QPen(QColor(border), 1))
        p.setBrush(QBrush(QColor(background)))
        p.drawRect(rect)
        p.setFont(font)
        p.setPen(QColor("#000000"))
        for i, line in enumerate(lines):
            line_rect = QRectF(rect.left(), rect.top() + LABEL_PADDING / 2 + i * line_height, width, line_height)
            p.drawText(line_rect, Qt.AlignCenter, line)
        p.restore()


class MapCanvas(QWidget):
    """
    Lienzo del mapa: traduce los eventos del ratón a coordenadas
    geográficas y los entrega al registro de herramientas.
    """

    # lat, lng bajo el puntero
    pointerMoved = Signal(float, float)
    # elevación del punto bajo el puntero (puede emitirse desde otro hilo)
    elevationReady = Signal(float)

    def __init__(self, registry, projection, elevation_lookup=None, parent=None):
        super().__init__(parent)
        self.registry = registry
        self.projection = projection
        self.elevation_lookup = elevation_lookup
        self._press_pos = None
        self._pan_last = None
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(400, 300)
        registry.redrawRequested.connect(self.update)

    def _coord(self, pos) -> tuple[float, float]:
        return self.projection.from_screen(pos.x(), pos.y())

    def _is_exploring(self) -> bool:
        return self.registry.get_active() is None

    # --- Eventos ---
    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QColor("#f4f1ea"))
        try:
            self.registry.draw(QtPainterSurface(painter, self.projection))
        finally:
            painter.end()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.projection.resize(self.width(), self.height())

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return
        pos = event.position()
        self._press_pos = pos
        if self._is_exploring():
            self._pan_last = pos
            return
        self.registry.handle_pointer_down(self._coord(pos))

    def mouseMoveEvent(self, event):
        pos = event.position()
        if self._pan_last is not None:
            self.projection.pan(pos.x() - self._pan_last.x(), pos.y() - self._pan_last.y())
            self._pan_last = pos
            self.update()
            return

        lat, lng = self._coord(pos)
        self.pointerMoved.emit(lat, lng)
        if self.elevation_lookup is not None:
            self.elevation_lookup(lat, lng, self.elevationReady.emit)
        if not self._is_exploring():
            self.registry.handle_pointer_move((lat, lng))

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton:
            return
        pos = event.position()
        self._pan_last = None
        if self._is_exploring():
            self._press_pos = None
            return
        coord = self._coord(pos)
        self.registry.handle_pointer_up(coord)
        if self._press_pos is not None:
            moved = (pos - self._press_pos).manhattanLength()
            if moved <= CLICK_SLOP:
                self.registry.handle_click(coord)
        self._press_pos = None

    def mouseDoubleClickEvent(self, event):
        if event.button() != Qt.LeftButton or self._is_exploring():
            return
        self.registry.handle_double_click(self._coord(event.position()))

    def wheelEvent(self, event):
        steps = event.angleDelta().y() / 120
        if steps:
            pos = event.position()
            self.projection.zoom_at(pos.x(), pos.y(), steps * 0.5)
            self.update()

    def keyPressEvent(self, event):
        tool = self.registry.get_active()
        if event.key() == Qt.Key_Escape and tool is not None:
            tool.cancel()
            self.update()
        elif event.key() in (Qt.Key_Return, Qt.Key_Enter):
            self.registry.finish_active_tool()
        else:
            super().keyPressEvent(event)
