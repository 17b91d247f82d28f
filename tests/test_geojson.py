import dataclasses
import json
import os
import tempfile
import unittest

from core.entity_store import EntityStore
from core.styles import StyleManager
from exporters.geojson_exporter import GeoJSONExporter
from importers.geojson_importer import GeoJSONImporter, InvalidDocumentError
from tools.delete_tool import DeleteTool
from tools.points_tool import PointsTool
from tools.polygon_tool import PolygonTool
from tools.polyline_tool import PolylineTool
from tools.sector_tool import SectorTool
from tools.text_tool import TextTool

from fakes import FakeElevation, RecordingSurface


def point_feature(lng, lat, **properties):
    return {"type": "Feature", "geometry": {"type": "Point", "coordinates": [lng, lat]},
            "properties": properties}


def make_tools(elevation=None):
    store = EntityStore()
    styles = StyleManager()
    return [
        PointsTool(styles, store, elevation),
        PolylineTool(styles, store, elevation),
        PolygonTool(styles, store, elevation),
        SectorTool(styles, store, elevation),
        TextTool(styles, store, elevation),
    ]


def fields(entity):
    data = dataclasses.asdict(entity)
    data.pop("id")
    data.pop("generation")
    return data


class TestRoundTrip(unittest.TestCase):
    def setUp(self):
        self.elevation = FakeElevation()
        self.tools = make_tools(self.elevation)
        points, line, polygon, sector, text = self.tools

        points.add((19.4326, -99.1332))
        self.elevation.pending.clear()  # el punto se queda sin elevación

        for coord in [(19.0, -99.0), (19.1, -99.05), (19.2, -99.0)]:
            line.add(coord)
        line.finish()
        first, _second, third = self.elevation.pending
        self.elevation.pending.clear()
        first[2](2240.0)
        third[2](2310.5)

        for coord in [(20.0, -100.0), (20.0, -99.9), (20.1, -99.9), (20.1, -100.0)]:
            polygon.add(coord)
        polygon.finish()

        sector.set_angle(90)
        sector.add((21.0, -101.0))
        sector.on_pointer_move((21.01, -101.0))
        sector.add((21.01, -101.0))
        self.elevation.resolve_all(1500.0)

        text.add((22.0, -102.0))
        text.set_text("Cerro")
        text.finish()

    def test_every_kind_survives_round_trip(self):
        document = json.loads(json.dumps(GeoJSONExporter.build_document(self.tools)))
        fresh = make_tools()
        count = GeoJSONImporter.import_document(document, fresh)
        self.assertEqual(count, 5)
        for original, imported in zip(self.tools, fresh):
            self.assertEqual(imported.item_count(), 1, type(original).__name__)
            self.assertEqual(fields(imported.items[0]), fields(original.items[0]), type(original).__name__)

    def test_line_elevations_keep_gaps(self):
        line = self.tools[1].items[0]
        self.assertEqual([v.elevation for v in line.vertices], [2240.0, None, 2310.5])
        feature = self.tools[1].to_features()[0]
        self.assertEqual(feature["properties"]["elevations"], [2240.0, None, 2310.5])

    def test_polygon_ring_is_closed_on_export(self):
        ring = self.tools[2].to_features()[0]["geometry"]["coordinates"][0]
        self.assertEqual(len(ring), 5)
        self.assertEqual(ring[0], ring[-1])
        self.assertEqual(ring[0], [-100.0, 20.0])

    def test_document_metadata(self):
        document = GeoJSONExporter.build_document(self.tools)
        self.assertEqual(document["type"], "FeatureCollection")
        self.assertEqual(document["properties"]["version"], "1.0")
        self.assertIn("exported", document["properties"])
        kinds = [f["geometry"]["type"] for f in document["features"]]
        self.assertEqual(kinds, ["Point", "LineString", "Polygon", "Polygon", "Point"])

    def test_stats(self):
        stats = GeoJSONExporter.stats(self.tools)
        self.assertEqual(stats["total_features"], 5)
        self.assertEqual(stats["by_type"]["Sector"], 1)
        self.assertEqual(stats["by_type"]["Polyline"], 1)

    def test_meta_tools_are_ignored(self):
        tools = [DeleteTool(None, None)] + make_tools()
        document = GeoJSONExporter.build_document(self.tools)
        self.assertEqual(GeoJSONImporter.import_document(document, tools), 5)


class TestImportValidation(unittest.TestCase):
    def setUp(self):
        self.tools = make_tools()

    def test_validate(self):
        self.assertTrue(GeoJSONImporter.validate({"type": "FeatureCollection", "features": []}))
        self.assertFalse(GeoJSONImporter.validate({"type": "Feature"}))
        self.assertFalse(GeoJSONImporter.validate([]))
        self.assertFalse(GeoJSONImporter.validate({"type": "FeatureCollection", "features": {}}))

    def test_invalid_document_raises(self):
        with self.assertRaises(InvalidDocumentError):
            GeoJSONImporter.import_document({"type": "Feature"}, self.tools)

    def test_unknown_and_broken_features_are_skipped(self):
        document = {
            "type": "FeatureCollection",
            "features": [
                "no soy un objeto",
                {"type": "Feature", "geometry": {"type": "MultiPoint", "coordinates": []}},
                {"type": "Feature", "geometry": {"type": "Point"}, "properties": {}},
                {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[]]},
                 "properties": {"type": "sector"}},
                {"type": "Feature", "geometry": {"type": "Point", "coordinates": [1.5, 2.5]}},
            ],
        }
        with self.assertLogs("importers.geojson_importer", level="WARNING") as logs:
            count = GeoJSONImporter.import_document(document, self.tools)
        self.assertEqual(count, 1)
        self.assertEqual(len(logs.records), 4)
        point = self.tools[0].items[0]
        self.assertEqual((point.lat, point.lng), (2.5, 1.5))

    def test_non_object_members_are_skipped_one_by_one(self):
        document = {
            "type": "FeatureCollection",
            "features": [
                point_feature(1.0, 1.0),
                {"type": "Feature", "geometry": {"type": "Point", "coordinates": [2.0, 2.0]},
                 "properties": ["x"]},
                {"type": "Feature", "geometry": "Point", "properties": {}},
                point_feature(3.0, 3.0),
            ],
        }
        with self.assertLogs("importers.geojson_importer", level="WARNING") as logs:
            count = GeoJSONImporter.import_document(document, self.tools)
        self.assertEqual(count, 2)
        self.assertEqual(len(logs.records), 2)
        self.assertEqual([(p.lat, p.lng) for p in self.tools[0].items], [(1.0, 1.0), (3.0, 3.0)])

    def test_non_numeric_angle_and_size_are_skipped(self):
        sector = {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1], [0, 0]]]},
            "properties": {"type": "sector", "center": {"lat": 0, "lng": 0},
                           "radius": 100, "bearing": 0, "angle": "ancho"},
        }
        text = point_feature(0.0, 0.0, type="text", text="hola", size="grande")
        document = {"type": "FeatureCollection", "features": [sector, text]}
        with self.assertLogs("importers.geojson_importer", level="WARNING"):
            self.assertEqual(GeoJSONImporter.import_document(document, self.tools), 0)
        self.assertEqual(self.tools[3].item_count(), 0)
        self.assertEqual(self.tools[4].item_count(), 0)

    def test_numeric_strings_are_converted(self):
        sector = {
            "type": "Feature",
            "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [0, 1], [1, 1], [0, 0]]]},
            "properties": {"type": "sector", "center": {"lat": 0, "lng": 0},
                           "radius": 100, "bearing": 0, "angle": "45"},
        }
        document = {"type": "FeatureCollection",
                    "features": [sector, point_feature(0.0, 0.0, type="text", text="a", size="16")]}
        self.assertEqual(GeoJSONImporter.import_document(document, self.tools), 2)
        self.assertEqual(self.tools[3].items[0].angle, 45.0)
        self.assertEqual(self.tools[4].items[0].size, 16)
        self.tools[3].draw(RecordingSurface())

    def test_out_of_range_positions_are_skipped(self):
        document = {
            "type": "FeatureCollection",
            "features": [
                point_feature(10.0, 200.0),
                point_feature(10.0, 20.0, type="text", text="t"),
                {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [190, 0]]}},
                {"type": "Feature", "geometry": {"type": "Polygon",
                                                  "coordinates": [[[0, 0], [0, 95], [1, 1], [0, 0]]]}},
                {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [[[0, 0]]]},
                 "properties": {"type": "sector", "center": {"lat": -91, "lng": 0},
                                "radius": 1, "bearing": 0, "angle": 60}},
            ],
        }
        with self.assertLogs("importers.geojson_importer", level="WARNING") as logs:
            count = GeoJSONImporter.import_document(document, self.tools)
        self.assertEqual(count, 1)
        self.assertEqual(len(logs.records), 4)
        self.assertEqual([t.item_count() for t in self.tools], [0, 0, 0, 0, 1])

    def test_short_geometries_are_not_counted(self):
        document = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0]]}},
                {"type": "Feature", "geometry": {"type": "Polygon",
                                                  "coordinates": [[[0, 0], [1, 1], [0, 0]]]}},
            ],
        }
        self.assertEqual(GeoJSONImporter.import_document(document, self.tools), 0)
        self.assertEqual(sum(t.item_count() for t in self.tools), 0)

    def test_text_is_not_taken_by_points(self):
        document = {
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": {"type": "Point", "coordinates": [0, 0]},
                          "properties": {"type": "text", "text": "hola"}}],
        }
        GeoJSONImporter.import_document(document, self.tools)
        self.assertEqual(self.tools[0].item_count(), 0)
        self.assertEqual(self.tools[4].items[0].text, "hola")


class TestFiles(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.tools = make_tools()
        self.tools[0].add((1.0, 2.0))

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_export_requires_geojson_extension(self):
        with self.assertRaises(ValueError):
            GeoJSONExporter.export(self.tools, os.path.join(self.tmpdir.name, "mapa.txt"))

    def test_export_and_import_file(self):
        path = os.path.join(self.tmpdir.name, "mapa.geojson")
        GeoJSONExporter.export(self.tools, path)
        with open(path, encoding="utf-8") as f:
            self.assertEqual(json.load(f)["features"][0]["geometry"]["coordinates"], [2.0, 1.0])
        fresh = make_tools()
        self.assertEqual(GeoJSONImporter.import_file(path, fresh), 1)

    def test_export_to_missing_directory_raises_runtime_error(self):
        with self.assertRaises(RuntimeError):
            GeoJSONExporter.export(self.tools, os.path.join(self.tmpdir.name, "no", "mapa.json"))

    def test_import_bad_json(self):
        path = os.path.join(self.tmpdir.name, "roto.geojson")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{\"type\": ")
        with self.assertRaises(InvalidDocumentError):
            GeoJSONImporter.import_file(path, self.tools)

    def test_import_missing_file(self):
        with self.assertRaises(RuntimeError):
            GeoJSONImporter.import_file(os.path.join(self.tmpdir.name, "nada.geojson"), self.tools)


if __name__ == '__main__':
    unittest.main()
