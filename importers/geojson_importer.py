# importers/geojson_importer.py
import json
import logging

logger = logging.getLogger(__name__)


class InvalidDocumentError(ValueError):
    """El documento no es una FeatureCollection GeoJSON válida."""


class GeoJSONImporter:
    @staticmethod
    def validate(document) -> bool:
        return (
            isinstance(document, dict)
            and document.get("type") == "FeatureCollection"
            and isinstance(document.get("features"), list)
        )

    @staticmethod
    def import_document(document, tools) -> int:
        """
        Hand each feature to the first tool whose ``accepts`` matches it.
        Features no tool accepts, or that fail to parse, are skipped.
        Returns the number of imported features.
        """
        if not GeoJSONImporter.validate(document):
            raise InvalidDocumentError("Formato GeoJSON no válido")

        count = 0
        for index, feature in enumerate(document["features"]):
            if not isinstance(feature, dict):
                logger.warning("Geometría %d ignorada: no es un objeto", index)
                continue
            try:
                owner = next((tool for tool in tools if type(tool).accepts(feature)), None)
                if owner is None:
                    logger.warning("Geometría %d ignorada: ningún tipo la reconoce", index)
                    continue
                if owner.import_feature(feature):
                    count += 1
            except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
                logger.warning("Geometría %d ignorada por datos inválidos: %s", index, e)
        return count

    @staticmethod
    def import_file(filename: str, tools) -> int:
        try:
            with open(filename, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidDocumentError(f"JSON no válido: {e}")
        except OSError as e:
            raise RuntimeError(f"No se pudo leer el archivo '{filename}': {e}")

        count = GeoJSONImporter.import_document(document, tools)
        logger.info("Importadas %d geometrías desde %s", count, filename)
        return count
