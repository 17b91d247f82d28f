# core/elevation.py
"""
Open-Elevation client with a coordinate-keyed cache, fire-and-forget
lookups on a worker pool and a debounced variant for pointer tracking.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import requests

from core.geometry import distance, interpolate_points
from core.settings import OPEN_ELEVATION_URL

logger = logging.getLogger(__name__)


class ElevationService:
    def __init__(self, url: str = OPEN_ELEVATION_URL, timeout: float = 10.0,
                 precision: int = 4, max_workers: int = 4, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self.precision = precision
        self._session = session or requests.Session()
        self._cache: dict[str, float] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="elevation")

    # --- Caché ---
    def _key(self, lat: float, lng: float) -> str:
        return f"{lat:.{self.precision}f},{lng:.{self.precision}f}"

    def cached(self, lat: float, lng: float) -> Optional[float]:
        with self._lock:
            return self._cache.get(self._key(lat, lng))

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    # --- Peticiones ---
    def _request(self, locations: list[tuple[float, float]]) -> Optional[list]:
        query = "|".join(f"{lat},{lng}" for lat, lng in locations)
        try:
            response = self._session.get(self.url, params={"locations": query}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning("Error al consultar la elevación: %s", e)
            return None
        if response.status_code != 200:
            logger.warning("El servicio de elevación devolvió HTTP %s", response.status_code)
            return None
        try:
            return response.json().get("results") or None
        except ValueError as e:
            logger.warning("Respuesta de elevación no válida: %s", e)
            return None

    def lookup(self, lat: float, lng: float) -> Optional[float]:
        """Elevation in whole meters, or None when unavailable."""
        key = self._key(lat, lng)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        results = self._request([(lat, lng)])
        if not results:
            return None
        try:
            elevation = round(float(results[0]["elevation"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Resultado de elevación sin valor para %s", key)
            return None
        with self._lock:
            self._cache[key] = elevation
        return elevation

    def lookup_batch(self, coords: list[tuple[float, float]]) -> list[Optional[float]]:
        """
        Elevations for several (lat, lng) pairs; cached ones are answered
        locally and the rest go in a single request.
        """
        results: list[Optional[float]] = [None] * len(coords)
        to_fetch = []
        for i, (lat, lng) in enumerate(coords):
            cached = self.cached(lat, lng)
            if cached is not None:
                results[i] = cached
            else:
                to_fetch.append(i)
        if not to_fetch:
            return results

        fetched = self._request([coords[i] for i in to_fetch])
        if not fetched:
            return results
        for index, item in zip(to_fetch, fetched):
            try:
                elevation = round(float(item["elevation"]))
            except (KeyError, TypeError, ValueError):
                continue
            lat, lng = coords[index]
            with self._lock:
                self._cache[self._key(lat, lng)] = elevation
            results[index] = elevation
        return results

    def lookup_async(self, lat: float, lng: float, callback: Callable[[float], None]):
        """
        Fire-and-forget lookup. ``callback`` runs on a worker thread and only
        when an elevation was obtained.
        """
        def task():
            elevation = self.lookup(lat, lng)
            if elevation is not None:
                callback(elevation)

        future = self._executor.submit(task)
        future.add_done_callback(_log_task_error)
        return future

    # --- Perfiles ---
    def profile(self, coords: list[tuple[float, float]], samples: Optional[int] = None) -> list[dict]:
        """
        Elevation profile along a vertex sequence: one dict per sample with
        lat, lng, elevation and cumulative distance in meters.
        """
        if len(coords) < 2:
            return []
        sample_points = interpolate_points(coords, samples) if samples else list(coords)
        elevations = self.lookup_batch(sample_points)

        total = 0.0
        profile = []
        for i, (lat, lng) in enumerate(sample_points):
            if i > 0:
                total += distance(sample_points[i - 1], sample_points[i])
            profile.append({"lat": lat, "lng": lng, "elevation": elevations[i], "distance": total})
        return profile

    def shutdown(self, wait: bool = False):
        self._executor.shutdown(wait=wait)
        self._session.close()


def profile_stats(profile: list[dict]) -> dict:
    """min / max / gain / loss (m) and average grade (%) of a profile."""
    empty = {"min": 0, "max": 0, "gain": 0, "loss": 0, "avg_grade": 0.0}
    known = [p["elevation"] for p in profile if p["elevation"] is not None]
    if not known:
        return empty

    gain = 0.0
    loss = 0.0
    for prev, cur in zip(profile, profile[1:]):
        if prev["elevation"] is None or cur["elevation"] is None:
            continue
        diff = cur["elevation"] - prev["elevation"]
        if diff > 0:
            gain += diff
        else:
            loss += -diff

    total_distance = profile[-1]["distance"]
    avg_grade = (gain + loss) / total_distance * 100 if total_distance > 0 else 0.0
    return {
        "min": round(min(known)),
        "max": round(max(known)),
        "gain": round(gain),
        "loss": round(loss),
        "avg_grade": round(avg_grade, 1),
    }


class DebouncedElevationLookup:
    """
    Solo la última petición dentro de la ventana ``delay`` (s) llega al
    servicio; pensado para la barra de estado que sigue al puntero.
    """

    def __init__(self, service: ElevationService, delay: float = 0.3):
        self.service = service
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def __call__(self, lat: float, lng: float, callback: Callable[[float], None]):
        def fire():
            elevation = self.service.lookup(lat, lng)
            if elevation is not None:
                callback(elevation)

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


def _log_task_error(future):
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error("Fallo en la consulta de elevación en segundo plano: %s", error)
