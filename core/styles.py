# core/styles.py
"""Default attribute bundles per entity kind, copied at creation time."""
import copy
import logging

logger = logging.getLogger(__name__)

DEFAULT_STYLES = {
    "points": {
        "color": "black",
        "symbol": "circle",   # circle, triangle, square
    },
    "line": {
        "color": "black",
        "style": "solid",     # solid, dashed
    },
    "polygon": {
        "color": "green",
        "alpha": 0.25,        # opacidad del relleno
    },
    "sector": {
        "color": "black",
        "angle": 60,          # grados
    },
    "text": {
        "text": "",
        "color": "black",
        "size": 14,           # px
    },
}

STYLE_OPTIONS = {
    "colors": ["black", "blue", "red", "green", "yellow"],
    "symbols": ["circle", "triangle", "square"],
    "line_styles": ["solid", "dashed"],
}


class StyleManager:
    def __init__(self, styles: dict | None = None):
        self.styles = copy.deepcopy(DEFAULT_STYLES)
        if styles:
            self.import_styles(styles)

    def get_style(self, kind: str) -> dict:
        """
        Devuelve una copia del estilo actual; la entidad nunca referencia
        el objeto del gestor.
        """
        if kind not in self.styles:
            logger.warning("StyleManager: tipo de herramienta desconocido '%s'", kind)
            return {}
        return dict(self.styles[kind])

    def get_defaults(self, kind: str) -> dict:
        if kind not in DEFAULT_STYLES:
            logger.warning("StyleManager: tipo de herramienta desconocido '%s'", kind)
            return {}
        return dict(DEFAULT_STYLES[kind])

    def set_style(self, kind: str, updates: dict):
        if kind not in self.styles:
            logger.warning("StyleManager: tipo de herramienta desconocido '%s'", kind)
            return
        self.styles[kind].update(updates)

    def update_property(self, kind: str, prop: str, value):
        self.set_style(kind, {prop: value})

    def reset(self, kind: str):
        if kind in DEFAULT_STYLES:
            self.styles[kind] = dict(DEFAULT_STYLES[kind])

    def reset_all(self):
        self.styles = copy.deepcopy(DEFAULT_STYLES)

    # --- Opciones para la interfaz ---
    def get_colors(self) -> list[str]:
        return list(STYLE_OPTIONS["colors"])

    def get_symbols(self) -> list[str]:
        return list(STYLE_OPTIONS["symbols"])

    def get_line_styles(self) -> list[str]:
        return list(STYLE_OPTIONS["line_styles"])

    def is_valid_color(self, color: str) -> bool:
        return color in STYLE_OPTIONS["colors"]

    def is_valid_symbol(self, symbol: str) -> bool:
        return symbol in STYLE_OPTIONS["symbols"]

    def is_valid_line_style(self, style: str) -> bool:
        return style in STYLE_OPTIONS["line_styles"]

    # --- Preferencias ---
    def export(self) -> dict:
        return copy.deepcopy(self.styles)

    def import_styles(self, styles: dict):
        if not isinstance(styles, dict):
            logger.warning("StyleManager: datos de estilo inválidos, se ignoran")
            return
        # Solo se importan tipos conocidos
        for kind, style in styles.items():
            if kind in self.styles and isinstance(style, dict):
                self.styles[kind] = dict(style)

    def get_description(self, kind: str) -> str:
        style = self.styles.get(kind)
        if style is None:
            return "Herramienta desconocida"
        parts = []
        if "color" in style:
            parts.append(f"color: {style['color']}")
        if "symbol" in style:
            parts.append(f"símbolo: {style['symbol']}")
        if "style" in style:
            parts.append(f"estilo: {style['style']}")
        if "alpha" in style:
            parts.append(f"opacidad: {style['alpha'] * 100:.0f}%")
        if "angle" in style:
            parts.append(f"ángulo: {style['angle']}°")
        if "size" in style:
            parts.append(f"tamaño: {style['size']}px")
        return ", ".join(parts)
