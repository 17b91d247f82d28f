# core/tool_registry.py
"""
Named tool registry with a single active tool. Pointer input from the map
canvas is routed here and forwarded to whichever tool is active.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)


@dataclass
class ToolChange:
    name: str
    tool: Any
    previous_name: Optional[str]
    previous_tool: Any


class ToolRegistry(QObject):
    # ToolChange
    toolChanged = Signal(object)
    # (nombre, herramienta)
    toolFinished = Signal(str, object)
    dataCleared = Signal()
    redrawRequested = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        # nombre -> herramienta (None para el modo exploración); orden de registro
        self._tools: dict[str, Any] = {}
        self._active: Optional[str] = None

    # --- Registro ---
    def register(self, name: str, tool):
        if name in self._tools:
            logger.warning("ToolRegistry: la herramienta '%s' ya estaba registrada, se sobrescribe", name)
        self._tools[name] = tool
        if self._active is None:
            self._active = name

    def unregister(self, name: str):
        if name not in self._tools:
            logger.warning("ToolRegistry: herramienta '%s' no encontrada", name)
            return
        del self._tools[name]
        if self._active == name:
            self._active = next(iter(self._tools), None)

    def set_active(self, name: str) -> bool:
        """
        Activa ``name``. El borrador de la herramienta anterior no se
        cancela: sigue pendiente y se puede retomar al volver a ella.
        """
        if name not in self._tools:
            logger.warning("ToolRegistry: herramienta '%s' no encontrada", name)
            return False
        previous = self._active
        self._active = name
        self.toolChanged.emit(ToolChange(name, self._tools[name], previous, self._tools.get(previous)))
        return True

    # --- Consultas ---
    def get_active(self):
        return self._tools.get(self._active)

    def get_active_name(self) -> Optional[str]:
        return self._active

    def get_tool(self, name: str):
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def is_active(self, name: str) -> bool:
        return self._active == name

    def get_all_tools(self) -> list:
        return [tool for tool in self._tools.values() if tool is not None]

    def get_all_tool_names(self) -> list[str]:
        return list(self._tools)

    def get_tools_in_order(self) -> list[tuple[str, Any]]:
        return list(self._tools.items())

    def get_tools_by_type(self, cls) -> list:
        return [tool for tool in self.get_all_tools() if isinstance(tool, cls)]

    def get_drawing_tools(self) -> list:
        """Herramientas con colección propia (sin exploración, mover ni borrar)."""
        return [tool for tool in self.get_all_tools() if not getattr(tool, "is_meta_tool", False)]

    def get_tool_count(self) -> int:
        return len(self._tools)

    # --- Operaciones ---
    def finish_active_tool(self):
        tool = self.get_active()
        if tool is None:
            return
        tool.finish()
        self.toolFinished.emit(self._active, tool)
        self.redrawRequested.emit()

    def clear_all_data(self):
        for tool in self.get_drawing_tools():
            tool.clear()
        self.dataCleared.emit()
        self.redrawRequested.emit()

    def execute_on_active(self, method_name: str, *args, **kwargs):
        """Llama ``method_name`` en la herramienta activa si lo tiene; si no, devuelve None."""
        method = getattr(self.get_active(), method_name, None)
        if not callable(method):
            return None
        return method(*args, **kwargs)

    def execute_on_all(self, method_name: str, *args, **kwargs) -> list:
        results = []
        for tool in self.get_all_tools():
            method = getattr(tool, method_name, None)
            if callable(method):
                results.append(method(*args, **kwargs))
        return results

    def get_stats(self) -> dict:
        stats = {
            "total_tools": self.get_tool_count(),
            "active_tool_name": self._active,
            "tools": {},
            "total_entities": 0,
        }
        for name, tool in self._tools.items():
            count = tool.item_count() if tool is not None else 0
            stats["tools"][name] = {"count": count}
            stats["total_entities"] += count
        return stats

    # --- Entrada del puntero ---
    def handle_click(self, coord):
        tool = self.get_active()
        if tool is None:
            return
        tool.add(coord)
        self.redrawRequested.emit()

    def handle_double_click(self, coord):
        self.finish_active_tool()

    def handle_pointer_down(self, coord):
        tool = self.get_active()
        if tool is None:
            return
        tool.on_pointer_down(coord)
        self.redrawRequested.emit()

    def handle_pointer_move(self, coord):
        tool = self.get_active()
        if tool is None:
            return
        tool.on_pointer_move(coord)
        self.redrawRequested.emit()

    def handle_pointer_up(self, coord):
        tool = self.get_active()
        if tool is None:
            return
        tool.on_pointer_up(coord)
        self.redrawRequested.emit()

    def draw(self, surface):
        for tool in self.get_all_tools():
            tool.draw(surface)

    def request_redraw(self):
        """Seguro desde hilos de trabajo: la señal se encola hacia el hilo de la interfaz."""
        self.redrawRequested.emit()
