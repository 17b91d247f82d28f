from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout,
    QLineEdit, QCheckBox,
    QDialogButtonBox
)
from PySide6.QtCore import Qt

from core.settings import EditorSettings


class ConfigDialog(QDialog):
    def __init__(self, settings: EditorSettings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Configuraciones")
        self.settings = settings
        self._build_ui()

    def _build_ui(self):
        # Layout principal
        layout = QVBoxLayout(self)

        # Formulario de ajustes
        form = QFormLayout()
        # Tolerancia de selección
        self.tolerance_edit = QLineEdit(str(self.settings.hit_tolerance))
        self.tolerance_edit.setPlaceholderText("Ej. 8")
        form.addRow("Tolerancia de selección (px):", self.tolerance_edit)

        # Precisión de decimales
        self.precision_edit = QLineEdit(str(self.settings.distance_decimals))
        self.precision_edit.setPlaceholderText("Ej. 2")
        form.addRow("Decimales (distancias):", self.precision_edit)

        # Elevación
        self.elevation_checkbox = QCheckBox()
        self.elevation_checkbox.setChecked(self.settings.elevation_enabled)
        form.addRow("Consultar elevación:", self.elevation_checkbox)

        self.elevation_url_edit = QLineEdit(self.settings.elevation_url)
        form.addRow("Servicio de elevación:", self.elevation_url_edit)

        self.discard_stale_checkbox = QCheckBox()
        self.discard_stale_checkbox.setChecked(self.settings.discard_stale_elevation)
        form.addRow("Descartar elevaciones obsoletas:", self.discard_stale_checkbox)

        layout.addLayout(form)

        # Botones Aceptar / Cancelar
        buttons = QDialogButtonBox(
            QDialogButtonBox.Ok | QDialogButtonBox.Cancel,
            Qt.Horizontal, self
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def get_values(self):
        """
        Devuelve un dict con los valores ingresados,
        tras un exec() exitoso.
        """
        return {
            "hit_tolerance":           self.tolerance_edit.text().strip(),
            "distance_decimals":       self.precision_edit.text().strip(),
            "elevation_enabled":       self.elevation_checkbox.isChecked(),
            "elevation_url":           self.elevation_url_edit.text().strip(),
            "discard_stale_elevation": self.discard_stale_checkbox.isChecked(),
        }
