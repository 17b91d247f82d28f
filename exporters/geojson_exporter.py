# exporters/geojson_exporter.py
import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

GEOJSON_VERSION = "1.0"


class GeoJSONExporter:
    @staticmethod
    def collect_features(tools) -> list[dict]:
        features = []
        for tool in tools:
            features.extend(tool.to_features())
        return features

    @staticmethod
    def build_document(tools) -> dict:
        """
        FeatureCollection with every committed entity of ``tools``, in tool
        order and collection order within each tool.
        """
        return {
            "type": "FeatureCollection",
            "features": GeoJSONExporter.collect_features(tools),
            "properties": {
                "exported": datetime.now(timezone.utc).isoformat(),
                "version": GEOJSON_VERSION,
            },
        }

    @staticmethod
    def export(tools, filename: str) -> dict:
        if not filename.lower().endswith((".geojson", ".json")):
            raise ValueError("El nombre de archivo debe terminar en .geojson o .json")

        document = GeoJSONExporter.build_document(tools)
        try:
            with open(filename, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError) as e:
            raise RuntimeError(f"Error al crear el archivo GeoJSON '{filename}': {e}")

        logger.info("Exportadas %d geometrías a %s", len(document["features"]), filename)
        return document

    @staticmethod
    def stats(tools) -> dict:
        stats = {"total_features": 0, "by_type": {}}
        for tool in tools:
            count = len(tool.to_features())
            type_name = type(tool).__name__.replace("Tool", "")
            stats["total_features"] += count
            stats["by_type"][type_name] = count
        return stats
