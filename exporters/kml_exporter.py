# exporters/kml_exporter.py
import logging
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.dom import minidom

from core.geometry import format_area, format_distance

logger = logging.getLogger(__name__)

# KML usa aabbggrr
KML_COLORS = {
    "black": "ff000000",
    "blue": "ffff0000",
    "red": "ff0000ff",
    "green": "ff008000",
    "yellow": "ff00ffff",
}


def _kml_color(name: str, alpha: float = 1.0) -> str:
    base = KML_COLORS.get(name, KML_COLORS["black"])
    return f"{int(round(alpha * 255)):02x}{base[2:]}"


def _coordinates_text(positions) -> str:
    return " ".join(f"{p[0]:.6f},{p[1]:.6f},0" for p in positions)


def _valid_position(p) -> bool:
    return isinstance(p, (list, tuple)) and len(p) >= 2


class KMLExporter:
    @staticmethod
    def _placemark_name(feature: dict, index: int) -> str:
        properties = feature.get("properties") or {}
        kind = properties.get("type")
        if kind == "text":
            return properties.get("text") or f"Texto {index}"
        if kind == "sector":
            return f"Sector {index}"
        geom_type = feature["geometry"]["type"]
        return {"Point": "Punto", "LineString": "Línea", "Polygon": "Polígono"}.get(geom_type, geom_type) + f" {index}"

    @staticmethod
    def _description(feature: dict) -> str:
        properties = feature.get("properties") or {}
        lines = []
        if properties.get("elevation") is not None:
            lines.append(f"Elevación: {properties['elevation']} m")
        if properties.get("distance") is not None:
            lines.append(f"Distancia: {format_distance(properties['distance'])}")
        if properties.get("type") == "sector":
            lines.append(f"Radio: {format_distance(properties.get('radius', 0))}")
            lines.append(f"Rumbo: {properties.get('bearing', 0):.1f}°")
            lines.append(f"Ángulo: {properties.get('angle', 0)}°")
        if properties.get("area") is not None:
            lines.append(f"Área: {format_area(properties['area'])}")
        return "\n".join(lines)

    @staticmethod
    def _add_style(pm: Element, properties: dict, geom_type: str):
        color = properties.get("color") or "black"
        style = SubElement(pm, "Style")
        if geom_type == "Point":
            icon_style = SubElement(style, "IconStyle")
            SubElement(icon_style, "color").text = _kml_color(color)
        else:
            line_style = SubElement(style, "LineStyle")
            SubElement(line_style, "color").text = _kml_color(color)
            SubElement(line_style, "width").text = "2"
        if geom_type == "Polygon":
            poly_style = SubElement(style, "PolyStyle")
            alpha = properties.get("alpha", 0.25)
            SubElement(poly_style, "color").text = _kml_color(color, alpha)

    @staticmethod
    def _build_kml_root_element(features: list[dict]) -> Element:
        """
        Builds the KML XML root Element from GeoJSON features (WGS84
        [lng, lat] positions). Features with missing or malformed geometry
        are skipped with a warning.
        """
        kml_root = Element("kml", xmlns="http://www.opengis.net/kml/2.2")
        doc = SubElement(kml_root, "Document")

        for index, feat in enumerate(features, start=1):
            geometry = feat.get("geometry") or {}
            geom_type = geometry.get("type")
            coords = geometry.get("coordinates")
            properties = feat.get("properties") or {}

            if not coords:
                logger.warning("Geometría %d (tipo %s) sin coordenadas. Se omitirá.", index, geom_type)
                continue

            if geom_type == "Point":
                if not _valid_position(coords):
                    logger.warning("Geometría %d: coordenadas de punto inválidas. Se omitirá.", index)
                    continue
                pm = SubElement(doc, "Placemark")
                SubElement(pm, "name").text = KMLExporter._placemark_name(feat, index)
                geom_elem = SubElement(pm, "Point")
                SubElement(geom_elem, "coordinates").text = _coordinates_text([coords])

            elif geom_type == "LineString":
                positions = [p for p in coords if _valid_position(p)]
                if len(positions) < 2:
                    logger.warning("Geometría %d: línea con menos de 2 coordenadas válidas. Se omitirá.", index)
                    continue
                pm = SubElement(doc, "Placemark")
                SubElement(pm, "name").text = KMLExporter._placemark_name(feat, index)
                geom_elem = SubElement(pm, "LineString")
                SubElement(geom_elem, "coordinates").text = _coordinates_text(positions)

            elif geom_type == "Polygon":
                ring = [p for p in coords[0] if _valid_position(p)]
                if ring and tuple(ring[0]) != tuple(ring[-1]):
                    ring.append(ring[0])
                # Anillo cerrado necesita al menos 4 puntos (3 únicos + cierre)
                if len(ring) < 4:
                    logger.warning("Geometría %d: polígono con menos de 3 vértices válidos. Se omitirá.", index)
                    continue
                pm = SubElement(doc, "Placemark")
                SubElement(pm, "name").text = KMLExporter._placemark_name(feat, index)
                poly_elem = SubElement(pm, "Polygon")
                obb = SubElement(poly_elem, "outerBoundaryIs")
                lr = SubElement(obb, "LinearRing")
                SubElement(lr, "coordinates").text = _coordinates_text(ring)

            else:
                logger.warning("Tipo de geometría '%s' (geometría %d) no soportado por KML. Se omitirá.",
                               geom_type, index)
                continue

            description = KMLExporter._description(feat)
            if description:
                # la descripción va tras el nombre
                desc_elem = Element("description")
                desc_elem.text = description
                pm.insert(1, desc_elem)
            KMLExporter._add_style(pm, properties, geom_type)

        return kml_root

    @staticmethod
    def to_string(features: list[dict]) -> str:
        kml_root = KMLExporter._build_kml_root_element(features)
        xml_bytes = tostring(kml_root, encoding="utf-8", method="xml")
        return minidom.parseString(xml_bytes).toprettyxml(indent="  ")

    @staticmethod
    def export(features: list[dict], filename: str):
        if not features:
            raise ValueError("No hay geometrías para exportar.")
        if not filename.lower().endswith(".kml"):
            raise ValueError("El nombre de archivo debe terminar en .kml")

        try:
            xml_str_pretty = KMLExporter.to_string(features)
            with open(filename, "w", encoding="utf-8") as f:
                f.write(xml_str_pretty)
        except (OSError, TypeError, ValueError) as e:
            raise RuntimeError(f"Error al crear el archivo KML '{filename}': {e}")
