# core/settings.py
import json
import logging
from dataclasses import asdict, dataclass, fields

logger = logging.getLogger(__name__)

OPEN_ELEVATION_URL = "https://api.open-elevation.com/api/v1/lookup"


@dataclass
class EditorSettings:
    """Ajustes del editor editables desde el diálogo de configuración."""

    hit_tolerance: float = 8.0        # px
    distance_decimals: int = 2
    elevation_enabled: bool = True
    elevation_url: str = OPEN_ELEVATION_URL
    elevation_timeout: float = 10.0   # s
    elevation_precision: int = 4      # decimales de la clave de caché (~11 m)
    elevation_debounce_ms: int = 300
    # Descarta elevaciones que llegan para entidades borradas o movidas
    discard_stale_elevation: bool = False
    map_center_lat: float = 50.0
    map_center_lng: float = 14.0
    map_zoom: float = 13.0

    @classmethod
    def from_dict(cls, values: dict) -> "EditorSettings":
        """
        Build settings from a mapping, ignoring unknown keys and coercing
        values to the declared field types. Raises ValueError on values
        that cannot be converted.
        """
        kwargs = {}
        for f in fields(cls):
            if f.name not in values or values[f.name] in (None, ""):
                continue
            raw = values[f.name]
            try:
                if f.type in ("bool", bool):
                    kwargs[f.name] = raw if isinstance(raw, bool) else str(raw).lower() in ("1", "true", "yes", "si", "sí")
                elif f.type in ("int", int):
                    kwargs[f.name] = int(raw)
                elif f.type in ("float", float):
                    kwargs[f.name] = float(raw)
                else:
                    kwargs[f.name] = str(raw)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Valor inválido para '{f.name}': {raw!r} ({e})")
        settings = cls(**kwargs)
        if settings.hit_tolerance <= 0:
            raise ValueError("La tolerancia de selección debe ser mayor que 0.")
        return settings

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def load(cls, filename: str) -> "EditorSettings":
        try:
            with open(filename, "r", encoding="utf-8") as f:
                return cls.from_dict(json.load(f))
        except FileNotFoundError:
            logger.info("Archivo de configuración '%s' no encontrado, se usan valores por defecto", filename)
            return cls()
        except (json.JSONDecodeError, ValueError) as e:
            raise RuntimeError(f"Error al leer la configuración '{filename}': {e}")

    def save(self, filename: str):
        try:
            with open(filename, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Error al guardar la configuración '{filename}': {e}")
