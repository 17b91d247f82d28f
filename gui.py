import logging
import os
import sys

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QActionGroup
from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QToolBar,
    QStyle,
    QMessageBox,
    QComboBox,
    QLineEdit,
    QLabel,
    QFileDialog,
    QSpinBox,
)

from config_dialog import ConfigDialog
from map_canvas import MapCanvas
from core.elevation import DebouncedElevationLookup, ElevationService
from core.entity_store import EntityStore
from core.hit_detection import HitDetector
from core.projection import MapProjection
from core.settings import EditorSettings
from core.styles import StyleManager
from core.tool_registry import ToolRegistry
from exporters.geojson_exporter import GeoJSONExporter
from exporters.kml_exporter import KMLExporter
from exporters.kmz_exporter import KMZExporter
from importers.geojson_importer import GeoJSONImporter
from tools.delete_tool import DeleteTool
from tools.move_tool import MoveTool
from tools.points_tool import PointsTool
from tools.polygon_tool import PolygonTool
from tools.polyline_tool import PolylineTool
from tools.sector_tool import SectorTool
from tools.text_tool import TextTool

logger = logging.getLogger(__name__)

SETTINGS_FILE = os.path.join(os.path.expanduser("~"), ".geosketch.json")

# (nombre, etiqueta, clase) en el orden de la barra de herramientas
DRAWING_TOOLS = [
    ("points", "Puntos", PointsTool),
    ("line", "Línea", PolylineTool),
    ("polygon", "Polígono", PolygonTool),
    ("sector", "Sector", SectorTool),
    ("text", "Texto", TextTool),
]


class MainWindow(QMainWindow):
    def __init__(self, settings_file: str = SETTINGS_FILE):
        super().__init__()
        self.setWindowTitle("GeoSketch: Dibujo y Medición sobre Mapa")
        self.settings_file = settings_file
        self.settings = self._load_settings()
        self._build_model()
        self._build_ui()
        self._create_toolbar()
        self._create_style_toolbar()
        self._update_status()

    def _load_settings(self) -> EditorSettings:
        try:
            return EditorSettings.load(self.settings_file)
        except RuntimeError as e:
            logger.warning("%s. Se usan valores por defecto.", e)
            return EditorSettings()

    # --- Modelo ---
    def _build_model(self):
        s = self.settings
        self.store = EntityStore()
        self.styles = StyleManager()
        self.elevation_service = ElevationService(s.elevation_url, s.elevation_timeout, s.elevation_precision)
        self.elevation_lookup = DebouncedElevationLookup(self.elevation_service, s.elevation_debounce_ms / 1000)
        self.projection = MapProjection(s.map_center_lat, s.map_center_lng, s.map_zoom)
        self.hit_detector = HitDetector(self.projection, s.hit_tolerance)

        self.registry = ToolRegistry(self)
        self.registry.register("explore", None)
        for name, _label, tool_cls in DRAWING_TOOLS:
            self.registry.register(name, tool_cls(
                self.styles,
                self.store,
                elevation=self.elevation_service if s.elevation_enabled else None,
                on_change=self.registry.request_redraw,
                discard_stale_elevation=s.discard_stale_elevation,
                distance_decimals=s.distance_decimals,
            ))
        self.registry.register("move", MoveTool(self.registry, self.hit_detector, self.store))
        self.registry.register("delete", DeleteTool(self.registry, self.hit_detector))
        self.registry.redrawRequested.connect(self._update_status)

    # --- Métodos de UI ---
    def _build_ui(self):
        self.canvas = MapCanvas(
            self.registry,
            self.projection,
            self.elevation_lookup if self.settings.elevation_enabled else None,
            self,
        )
        self.setCentralWidget(self.canvas)
        self.canvas.pointerMoved.connect(self._on_pointer_moved)
        self.canvas.elevationReady.connect(self._on_elevation_ready)

        self.coords_label = QLabel("")
        self.elevation_label = QLabel("")
        self.stats_label = QLabel("")
        self.statusBar().addWidget(self.coords_label)
        self.statusBar().addWidget(self.elevation_label)
        self.statusBar().addPermanentWidget(self.stats_label)

    def _create_toolbar(self):
        tb = QToolBar("Principal"); self.addToolBar(tb)
        actions_data = [
            (QStyle.SP_FileIcon, "Nuevo", self._on_new),
            (QStyle.SP_DirOpenIcon, "Importar", self._on_import),
            (QStyle.SP_DialogSaveButton, "Exportar", self._on_export),
            None,
            (QStyle.SP_DialogApplyButton, "Terminar", self.registry.finish_active_tool),
            (QStyle.SP_DialogCancelButton, "Cancelar", self._on_cancel),
            None,
            (QStyle.SP_FileDialogDetailedView, "Configuraciones", self._on_settings),
        ]
        for item_data in actions_data:
            if item_data is None: tb.addSeparator(); continue
            action = QAction(self.style().standardIcon(item_data[0]), item_data[1], self)
            action.triggered.connect(item_data[2])
            tb.addAction(action)

        tools_tb = QToolBar("Herramientas"); self.addToolBar(tools_tb)
        group = QActionGroup(self)
        group.setExclusive(True)
        entries = [("explore", "Explorar")] + [(name, label) for name, label, _ in DRAWING_TOOLS] + \
                  [("move", "Mover"), ("delete", "Borrar")]
        self.tool_actions = {}
        for name, label in entries:
            action = QAction(label, self)
            action.setCheckable(True)
            action.setChecked(self.registry.is_active(name))
            action.triggered.connect(lambda checked=False, n=name: self._on_tool_selected(n))
            group.addAction(action)
            tools_tb.addAction(action)
            self.tool_actions[name] = action

    def _create_style_toolbar(self):
        tb = QToolBar("Estilo"); self.addToolBar(Qt.BottomToolBarArea, tb)

        tb.addWidget(QLabel("Color:"))
        self.cb_color = QComboBox(); self.cb_color.addItems(self.styles.get_colors())
        self.cb_color.currentTextChanged.connect(self._on_color_changed)
        tb.addWidget(self.cb_color)

        tb.addWidget(QLabel("Símbolo:"))
        self.cb_symbol = QComboBox(); self.cb_symbol.addItems(self.styles.get_symbols())
        self.cb_symbol.currentTextChanged.connect(lambda v: self.styles.update_property("points", "symbol", v))
        tb.addWidget(self.cb_symbol)

        tb.addWidget(QLabel("Trazo:"))
        self.cb_line_style = QComboBox(); self.cb_line_style.addItems(self.styles.get_line_styles())
        self.cb_line_style.currentTextChanged.connect(lambda v: self.styles.update_property("line", "style", v))
        tb.addWidget(self.cb_line_style)

        tb.addWidget(QLabel("Ángulo:"))
        self.sb_angle = QSpinBox(); self.sb_angle.setRange(1, 360)
        self.sb_angle.setValue(self.styles.get_style("sector")["angle"]); self.sb_angle.setSuffix("°")
        self.sb_angle.valueChanged.connect(self._on_angle_changed)
        tb.addWidget(self.sb_angle)

        tb.addWidget(QLabel("Texto:"))
        self.le_text = QLineEdit(); self.le_text.setPlaceholderText("Clic en el mapa y escriba")
        self.le_text.textChanged.connect(self._on_text_changed)
        self.le_text.returnPressed.connect(self._on_text_committed)
        tb.addWidget(self.le_text)

    # --- Slots ---
    def _on_tool_selected(self, name: str):
        self.registry.set_active(name)
        self.canvas.setCursor(Qt.OpenHandCursor if name == "explore" else Qt.CrossCursor)
        self._update_status()

    def _on_color_changed(self, color: str):
        name = self.registry.get_active_name()
        if name in ("points", "line", "polygon", "sector", "text"):
            self.styles.update_property(name, "color", color)

    def _on_angle_changed(self, value: int):
        self.registry.get_tool("sector").set_angle(value)
        self.canvas.update()

    def _on_text_changed(self, value: str):
        if self.registry.get_tool("text").set_text(value):
            self.canvas.update()

    def _on_text_committed(self):
        text_tool = self.registry.get_tool("text")
        text_tool.finish()
        self.le_text.clear()
        self.registry.request_redraw()

    def _on_cancel(self):
        tool = self.registry.get_active()
        if tool is not None:
            tool.cancel()
        self.canvas.update()

    def _on_pointer_moved(self, lat: float, lng: float):
        self.coords_label.setText(f"{lat:.5f}, {lng:.5f}")

    def _on_elevation_ready(self, elevation: float):
        self.elevation_label.setText(f"Elevación: {elevation:.0f} m")

    def _update_status(self):
        stats = self.registry.get_stats()
        self.stats_label.setText(
            f"Herramienta: {stats['active_tool_name']} | Geometrías: {stats['total_entities']}"
        )

    def _on_new(self):
        if len(self.store) > 0:
            answer = QMessageBox.question(self, "Nuevo", "¿Borrar todas las geometrías?")
            if answer != QMessageBox.Yes:
                return
        self.registry.clear_all_data()

    def _on_import(self):
        filters = "GeoJSON (*.geojson *.json);;Todos los archivos (*)"
        path, _ = QFileDialog.getOpenFileName(self, "Importar GeoJSON", "", filters)
        if not path: return
        try:
            count = GeoJSONImporter.import_file(path, self.registry.get_drawing_tools())
        except (RuntimeError, ValueError) as e:
            QMessageBox.critical(self, "Error de Importación", f"Error: {e}")
            return
        self.registry.request_redraw()
        QMessageBox.information(self, "Importación Exitosa",
                                f"{count} geometrías importadas de {os.path.basename(path)}.")

    def _on_export(self):
        filters = "GeoJSON (*.geojson);;KML (*.kml);;KMZ (*.kmz)"
        path, _ = QFileDialog.getSaveFileName(self, "Exportar", "geometry-data.geojson", filters)
        if not path: return
        tools = self.registry.get_drawing_tools()
        ext = os.path.splitext(path)[1].lower()
        try:
            if ext in (".geojson", ".json"):
                GeoJSONExporter.export(tools, path)
            elif ext == ".kml":
                KMLExporter.export(GeoJSONExporter.collect_features(tools), path)
            elif ext == ".kmz":
                KMZExporter.export(GeoJSONExporter.collect_features(tools), path)
            else:
                QMessageBox.warning(self, "Formato no Soportado", f"Exportación a '{ext}' no implementada."); return
        except (ValueError, RuntimeError) as e:
            QMessageBox.critical(self, "Error de Exportación", f"Error al exportar a '{ext}':\n{e}")
            return
        QMessageBox.information(self, "Éxito", f"Archivo guardado en:\n{path}")

    def _on_settings(self):
        dialog = ConfigDialog(self.settings, self)
        if not dialog.exec():
            return
        values = self.settings.to_dict()
        values.update(dialog.get_values())
        try:
            new_settings = EditorSettings.from_dict(values)
        except ValueError as e:
            QMessageBox.warning(self, "Configuración Inválida", str(e))
            return
        self._apply_settings(new_settings)
        try:
            new_settings.save(self.settings_file)
        except RuntimeError as e:
            QMessageBox.warning(self, "Configuración", str(e))

    def _apply_settings(self, settings: EditorSettings):
        self.settings = settings
        self.hit_detector.set_tolerance(settings.hit_tolerance)
        self.elevation_service.url = settings.elevation_url
        for tool in self.registry.get_drawing_tools():
            tool.elevation = self.elevation_service if settings.elevation_enabled else None
            tool.discard_stale_elevation = settings.discard_stale_elevation
            tool.distance_decimals = settings.distance_decimals
        self.canvas.elevation_lookup = self.elevation_lookup if settings.elevation_enabled else None
        self.canvas.update()

    def closeEvent(self, event):
        self.elevation_lookup.cancel()
        self.elevation_service.shutdown()
        super().closeEvent(event)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    win = MainWindow()
    win.resize(1100, 750)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
