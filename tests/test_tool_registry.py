import os
import unittest
from unittest.mock import MagicMock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

from core.entity_store import EntityStore
from core.hit_detection import HitDetector
from core.styles import StyleManager
from core.tool_registry import ToolChange, ToolRegistry
from tools.delete_tool import DeleteTool
from tools.move_tool import MoveTool
from tools.points_tool import PointsTool
from tools.polygon_tool import PolygonTool
from tools.polyline_tool import PolylineTool
from tools.sector_tool import SectorTool
from tools.text_tool import TextTool

from fakes import LinearProjection, RecordingSurface


def build_registry():
    """Registro completo como lo monta la ventana principal, sin elevación."""
    store = EntityStore()
    styles = StyleManager()
    registry = ToolRegistry()
    detector = HitDetector(LinearProjection(), tolerance=8.0)
    registry.register("explore", None)
    registry.register("points", PointsTool(styles, store))
    registry.register("line", PolylineTool(styles, store))
    registry.register("polygon", PolygonTool(styles, store))
    registry.register("sector", SectorTool(styles, store))
    registry.register("text", TextTool(styles, store))
    registry.register("move", MoveTool(registry, detector, store))
    registry.register("delete", DeleteTool(registry, detector))
    return registry, store


class RegistryTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.registry, self.store = build_registry()


class TestRegistration(RegistryTestCase):
    def test_first_registered_is_active(self):
        self.assertEqual(self.registry.get_active_name(), "explore")
        self.assertIsNone(self.registry.get_active())

    def test_overwrite_warns(self):
        with self.assertLogs("core.tool_registry", level="WARNING"):
            self.registry.register("points", MagicMock())
        self.assertEqual(self.registry.get_all_tool_names().count("points"), 1)

    def test_unregister_active_switches_to_first_remaining(self):
        self.registry.set_active("line")
        self.registry.unregister("line")
        self.assertEqual(self.registry.get_active_name(), "explore")
        self.registry.unregister("explore")
        self.assertEqual(self.registry.get_active_name(), "points")

    def test_unregister_unknown_warns(self):
        with self.assertLogs("core.tool_registry", level="WARNING"):
            self.registry.unregister("nope")
        self.assertEqual(self.registry.get_tool_count(), 8)

    def test_set_active_unknown(self):
        with self.assertLogs("core.tool_registry", level="WARNING"):
            self.assertFalse(self.registry.set_active("lasso"))
        self.assertEqual(self.registry.get_active_name(), "explore")

    def test_tool_changed_payload(self):
        changes = []
        self.registry.toolChanged.connect(changes.append)
        self.assertTrue(self.registry.set_active("sector"))
        self.assertEqual(changes, [ToolChange("sector", self.registry.get_tool("sector"), "explore", None)])
        self.assertTrue(self.registry.is_active("sector"))

    def test_queries(self):
        self.assertTrue(self.registry.has_tool("move"))
        self.assertIsNone(self.registry.get_tool("explore"))
        self.assertEqual(len(self.registry.get_all_tools()), 7)
        drawing = self.registry.get_drawing_tools()
        self.assertEqual([type(t).__name__ for t in drawing],
                         ["PointsTool", "PolylineTool", "PolygonTool", "SectorTool", "TextTool"])
        self.assertEqual(self.registry.get_tools_by_type(PolygonTool), [self.registry.get_tool("polygon")])


class TestRouting(RegistryTestCase):
    def test_click_in_explore_mode_is_noop(self):
        self.registry.handle_click((1.0, 1.0))
        self.assertEqual(len(self.store), 0)

    def test_click_and_double_click_route_to_active_tool(self):
        finished = []
        redraws = []
        self.registry.toolFinished.connect(lambda name, tool: finished.append(name))
        self.registry.redrawRequested.connect(lambda: redraws.append(1))
        self.registry.set_active("line")
        self.registry.handle_click((0.0, 0.0))
        self.registry.handle_pointer_move((0.0, 0.5))
        self.registry.handle_click((0.0, 1.0))
        self.registry.handle_double_click((0.0, 1.0))
        self.assertEqual(self.registry.get_tool("line").item_count(), 1)
        self.assertEqual(finished, ["line"])
        self.assertGreaterEqual(len(redraws), 4)

    def test_switching_tools_keeps_draft(self):
        self.registry.set_active("polygon")
        self.registry.handle_click((0.0, 0.0))
        self.registry.set_active("points")
        polygon = self.registry.get_tool("polygon")
        self.assertTrue(polygon.is_drawing())
        self.registry.set_active("polygon")
        self.registry.handle_click((0.0, 1.0))
        self.registry.handle_click((1.0, 1.0))
        self.registry.finish_active_tool()
        self.assertEqual(polygon.item_count(), 1)
        self.assertEqual(len(polygon.items[0].vertices), 3)

    def test_draw_visits_every_tool(self):
        self.registry.set_active("points")
        self.registry.handle_click((0.0, 0.0))
        surface = RecordingSurface()
        self.registry.draw(surface)
        self.assertEqual(len(surface.named("marker")), 1)

    def test_execute_on_active(self):
        self.assertIsNone(self.registry.execute_on_active("item_count"))
        self.registry.set_active("points")
        self.registry.handle_click((0.0, 0.0))
        self.assertEqual(self.registry.execute_on_active("item_count"), 1)
        self.assertIsNone(self.registry.execute_on_active("set_text", "hola"))

    def test_execute_on_all(self):
        self.registry.set_active("text")
        self.registry.handle_click((1.0, 1.0))
        self.assertEqual(self.registry.execute_on_all("set_text", "hola"), [True])
        self.assertEqual(self.registry.get_tool("text").draft.text, "hola")
        self.assertEqual(self.registry.execute_on_all("item_count"), [0, 0, 0, 0, 0, 0, 0])

    def test_request_redraw_emits(self):
        redraws = []
        self.registry.redrawRequested.connect(lambda: redraws.append(1))
        self.registry.request_redraw()
        self.assertEqual(redraws, [1])


class TestClearAndStats(RegistryTestCase):
    def _populate(self):
        self.registry.set_active("points")
        self.registry.handle_click((0.0, 0.0))
        self.registry.handle_click((1.0, 1.0))
        self.registry.set_active("line")
        self.registry.handle_click((0.0, 0.0))
        self.registry.handle_click((0.0, 2.0))
        self.registry.finish_active_tool()
        # borradores pendientes en varias herramientas
        self.registry.handle_click((5.0, 5.0))
        self.registry.set_active("sector")
        self.registry.handle_click((3.0, 3.0))
        self.registry.set_active("text")
        self.registry.handle_click((4.0, 4.0))

    def test_stats(self):
        self._populate()
        stats = self.registry.get_stats()
        self.assertEqual(stats["total_tools"], 8)
        self.assertEqual(stats["active_tool_name"], "text")
        self.assertEqual(stats["tools"]["points"], {"count": 2})
        self.assertEqual(stats["tools"]["line"], {"count": 1})
        self.assertEqual(stats["tools"]["explore"], {"count": 0})
        self.assertEqual(stats["total_entities"], 3)

    def test_clear_all_data_empties_collections_and_cancels_drafts(self):
        self._populate()
        cleared = []
        self.registry.dataCleared.connect(lambda: cleared.append(1))
        self.registry.clear_all_data()
        for tool in self.registry.get_drawing_tools():
            self.assertEqual(tool.item_count(), 0)
            self.assertFalse(tool.is_drawing())
        self.assertEqual(len(self.store), 0)
        self.assertEqual(cleared, [1])


class TestMoveTool(RegistryTestCase):
    def _drag(self, start, end):
        self.registry.set_active("move")
        self.registry.handle_pointer_down(start)
        self.registry.handle_pointer_move(end)
        self.registry.handle_pointer_up(end)

    def _add_line(self):
        self.registry.set_active("line")
        for p in [(0.0, 0.0), (0.0, 20.0), (10.0, 20.0)]:
            self.registry.handle_click(p)
        self.registry.finish_active_tool()
        return self.registry.get_tool("line").items[0]

    def test_two_drags_equal_single_drag(self):
        line = self._add_line()
        self._drag((0.0, 10.0), (1.5, 12.25))
        self._drag((1.5, 12.25), (-2.0, 13.0))
        twice = [(v.lat, v.lng) for v in line.vertices]

        self.setUp()
        line = self._add_line()
        self._drag((0.0, 10.0), (-2.0, 13.0))
        once = [(v.lat, v.lng) for v in line.vertices]
        for (lat_a, lng_a), (lat_b, lng_b) in zip(twice, once):
            self.assertAlmostEqual(lat_a, lat_b)
            self.assertAlmostEqual(lng_a, lng_b)

    def test_moves_recompute_from_snapshot(self):
        self.registry.set_active("points")
        self.registry.handle_click((10.0, 10.0))
        point = self.registry.get_tool("points").items[0]
        self.registry.set_active("move")
        self.registry.handle_pointer_down((10.0, 10.0))
        self.registry.handle_pointer_move((12.0, 11.0))
        self.registry.handle_pointer_move((13.0, 14.0))
        self.assertEqual((point.lat, point.lng), (13.0, 14.0))
        self.registry.handle_pointer_up((13.0, 14.0))
        self.assertFalse(self.registry.get_tool("move").is_dragging())

    def test_drag_start_bumps_generation(self):
        self.registry.set_active("points")
        self.registry.handle_click((10.0, 10.0))
        point = self.registry.get_tool("points").items[0]
        self.registry.set_active("move")
        self.registry.handle_pointer_down((10.0, 10.0))
        self.assertEqual(point.generation, 1)

    def test_miss_does_nothing(self):
        self.registry.set_active("points")
        self.registry.handle_click((10.0, 10.0))
        self._drag((40.0, 40.0), (50.0, 50.0))
        point = self.registry.get_tool("points").items[0]
        self.assertEqual((point.lat, point.lng), (10.0, 10.0))

    def test_moves_sector_center(self):
        self.registry.set_active("sector")
        self.registry.handle_click((0.0, 0.0))
        self.registry.handle_pointer_move((0.0, 0.01))
        self.registry.handle_click((0.0, 0.01))
        sector = self.registry.get_tool("sector").items[0]
        radius = sector.radius
        self._drag((0.0, 0.0), (2.0, 3.0))
        self.assertEqual((sector.center.lat, sector.center.lng), (2.0, 3.0))
        self.assertEqual(sector.radius, radius)


class TestDeleteTool(RegistryTestCase):
    def _add_points(self, coords):
        self.registry.set_active("points")
        for c in coords:
            self.registry.handle_click(c)
        return self.registry.get_tool("points")

    def test_delete_removes_exactly_one_and_keeps_order(self):
        points = self._add_points([(0.0, 0.0), (0.0, 30.0), (0.0, 60.0), (0.0, 90.0)])
        ids = [p.id for p in points.items]
        self.registry.set_active("delete")
        self.registry.handle_click((0.0, 31.0))
        self.assertEqual([p.id for p in points.items], [ids[0], ids[2], ids[3]])
        self.assertNotIn(ids[1], self.store)

    def test_delete_miss_leaves_everything(self):
        points = self._add_points([(0.0, 0.0), (0.0, 30.0)])
        self.registry.set_active("text")
        self.registry.handle_click((5.0, 5.0))
        self.registry.get_tool("text").set_text("hola")
        self.registry.finish_active_tool()
        before = {name: tool.item_count() for name, tool in self.registry.get_tools_in_order() if tool}
        self.registry.set_active("delete")
        self.registry.handle_click((-40.0, 70.0))
        after = {name: tool.item_count() for name, tool in self.registry.get_tools_in_order() if tool}
        self.assertEqual(before, after)
        self.assertEqual(points.item_count(), 2)

    def test_delete_from_other_tool(self):
        self._add_points([(0.0, 0.0)])
        self.registry.set_active("polygon")
        for p in [(20.0, 20.0), (20.0, 40.0), (40.0, 40.0)]:
            self.registry.handle_click(p)
        self.registry.finish_active_tool()
        self.registry.set_active("delete")
        self.registry.handle_click((20.0, 30.0))
        self.assertEqual(self.registry.get_tool("polygon").item_count(), 0)
        self.assertEqual(self.registry.get_tool("points").item_count(), 1)


if __name__ == '__main__':
    unittest.main()
