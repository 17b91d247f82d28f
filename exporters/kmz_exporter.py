# exporters/kmz_exporter.py
import zipfile

from exporters.kml_exporter import KMLExporter


class KMZExporter:
    @staticmethod
    def _generate_kml_string(features: list[dict]) -> str:
        """KML document for ``features``, built by the shared KML logic."""
        return KMLExporter.to_string(features)

    @staticmethod
    def export(features: list[dict], filename: str):
        if not features:
            raise ValueError("No hay geometrías para exportar.")

        if not filename.lower().endswith(".kmz"):
            raise ValueError("El nombre de archivo debe terminar en .kmz")

        try:
            kml_content_bytes = KMZExporter._generate_kml_string(features).encode("utf-8")
            with zipfile.ZipFile(filename, "w", zipfile.ZIP_DEFLATED) as kmz_file:
                kmz_file.writestr("doc.kml", kml_content_bytes)
        except (OSError, TypeError, ValueError, zipfile.BadZipFile) as e:
            raise RuntimeError(f"Error al crear el archivo KMZ '{filename}': {e}")
