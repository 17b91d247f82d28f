# core/geometry.py
"""
Cálculos geográficos sobre una Tierra esférica (Haversine, rumbo,
proyección, áreas) y formateo de unidades para las etiquetas.

Las áreas y centroides de polígonos son aproximaciones planas válidas
solo para extensiones pequeñas.
"""
import math

# Radio terrestre en metros
EARTH_RADIUS = 6378137.0

# Metros por grado (aproximación constante para áreas planas)
METERS_PER_DEGREE = 111320.0

# Paso angular (grados) para generar el arco de un sector
SECTOR_STEP_DEGREES = 3.0


def lat_lng(point) -> tuple[float, float]:
    """Acepta objetos con .lat/.lng o tuplas (lat, lng)."""
    if isinstance(point, (list, tuple)):
        return float(point[0]), float(point[1])
    return float(point.lat), float(point.lng)


def distance(a, b) -> float:
    """Great-circle distance in meters between two coordinates (haversine)."""
    lat1, lng1 = lat_lng(a)
    lat2, lng2 = lat_lng(b)
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    sin_lat = math.sin(d_lat / 2)
    sin_lng = math.sin(d_lng / 2)
    c = (sin_lat * sin_lat
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * sin_lng * sin_lng)
    return 2 * EARTH_RADIUS * math.atan2(math.sqrt(c), math.sqrt(1 - c))


def bearing(a, b) -> float:
    """Initial bearing in degrees [0, 360) from ``a`` towards ``b``."""
    lat1, lng1 = lat_lng(a)
    lat2, lng2 = lat_lng(b)
    d_lng = math.radians(lng2 - lng1)
    y = math.sin(d_lng) * math.cos(math.radians(lat2))
    x = (math.cos(math.radians(lat1)) * math.sin(math.radians(lat2))
         - math.sin(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.cos(d_lng))
    return (math.degrees(math.atan2(y, x)) + 360.0) % 360.0


def project(center, dist: float, brg: float) -> tuple[float, float]:
    """
    Destination point from ``center`` after travelling ``dist`` meters
    along bearing ``brg``. Returns (lat, lng).
    """
    lat0, lng0 = lat_lng(center)
    b = math.radians(brg)
    lat1 = math.radians(lat0)
    lng1 = math.radians(lng0)
    ang = dist / EARTH_RADIUS

    lat2 = math.asin(math.sin(lat1) * math.cos(ang)
                     + math.cos(lat1) * math.sin(ang) * math.cos(b))
    lng2 = lng1 + math.atan2(math.sin(b) * math.sin(ang) * math.cos(lat1),
                             math.cos(ang) - math.sin(lat1) * math.sin(lat2))
    return math.degrees(lat2), math.degrees(lng2)


def midpoint(a, b) -> tuple[float, float]:
    """Spherical midpoint of two coordinates. Returns (lat, lng)."""
    lat_a, lng_a = lat_lng(a)
    lat_b, lng_b = lat_lng(b)
    lat1 = math.radians(lat_a)
    lng1 = math.radians(lng_a)
    lat2 = math.radians(lat_b)
    d_lng = math.radians(lng_b - lng_a)

    bx = math.cos(lat2) * math.cos(d_lng)
    by = math.cos(lat2) * math.sin(d_lng)
    lat3 = math.atan2(math.sin(lat1) + math.sin(lat2),
                      math.sqrt((math.cos(lat1) + bx) ** 2 + by * by))
    lng3 = lng1 + math.atan2(by, math.cos(lat1) + bx)
    return math.degrees(lat3), math.degrees(lng3)


def polyline_length(points) -> float:
    """Cumulative pairwise great-circle length of a vertex sequence."""
    if len(points) < 2:
        return 0.0
    total = 0.0
    for i in range(len(points) - 1):
        total += distance(points[i], points[i + 1])
    return total


def polygon_area(points) -> float:
    """
    Área aproximada en m² (fórmula de Shoelace sobre grados, escalada por
    METERS_PER_DEGREE²). No es geodésicamente exacta.
    """
    if len(points) < 3:
        return 0.0
    area = 0.0
    n = len(points)
    for i in range(n):
        j = (i + 1) % n
        lat_i, lng_i = lat_lng(points[i])
        lat_j, lng_j = lat_lng(points[j])
        area += lng_i * lat_j
        area -= lng_j * lat_i
    area = math.fabs(area) / 2
    return area * METERS_PER_DEGREE * METERS_PER_DEGREE


def polygon_center(points) -> tuple[float, float]:
    """Arithmetic mean of the vertices (planar centroid approximation)."""
    if not points:
        return 0.0, 0.0
    lat_sum = 0.0
    lng_sum = 0.0
    for p in points:
        lat, lng = lat_lng(p)
        lat_sum += lat
        lng_sum += lng
    return lat_sum / len(points), lng_sum / len(points)


def point_in_polygon(point, polygon) -> bool:
    """Ray-casting containment test on raw lat/lng."""
    lat, lng = lat_lng(point)
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        yi, xi = lat_lng(polygon[i])
        yj, xj = lat_lng(polygon[j])
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < x_cross:
                inside = not inside
        j = i
    return inside


def sector_coordinates(center, radius: float, brg: float, angle: float) -> list[tuple[float, float]]:
    """
    Anillo cerrado del sector como lista de (lng, lat), empezando y
    terminando en el centro.
    """
    lat0, lng0 = lat_lng(center)
    coords = [(lng0, lat0)]
    a = -angle / 2
    while a <= angle / 2:
        lat, lng = project((lat0, lng0), radius, brg + a)
        coords.append((lng, lat))
        a += SECTOR_STEP_DEGREES
    coords.append((lng0, lat0))
    return coords


def sector_area(radius: float, angle: float) -> float:
    """Area of a circular sector: pi * r^2 * angle / 360."""
    return math.pi * radius * radius * (angle / 360.0)


def format_distance(meters: float, decimals: int = 2) -> str:
    if meters < 1000:
        return f"{meters:.{decimals}f} m"
    return f"{meters / 1000:.{decimals}f} km"


def format_area(sq_meters: float, decimals: int = 2) -> str:
    if sq_meters < 10000:
        return f"{sq_meters:.{decimals}f} m²"
    if sq_meters < 1000000:
        return f"{sq_meters / 10000:.{decimals}f} ha"
    return f"{sq_meters / 1000000:.{decimals}f} km²"


def normalize_lng(lng: float) -> float:
    while lng > 180:
        lng -= 360
    while lng < -180:
        lng += 360
    return lng


def clamp_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def distance_to_segment(p: tuple[float, float], a: tuple[float, float], b: tuple[float, float]) -> float:
    """
    Distancia en pantalla (px) del punto ``p`` al segmento ``a``-``b``,
    con el parámetro de proyección acotado a [0, 1].
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if dx == 0 and dy == 0:
        return math.hypot(p[0] - a[0], p[1] - a[1])
    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    x = a[0] + t * dx
    y = a[1] + t * dy
    return math.hypot(p[0] - x, p[1] - y)


def interpolate_points(points, count: int) -> list[tuple[float, float]]:
    """
    Linear resampling of a vertex sequence to ``count`` coordinates
    (lat, lng). Sequences that already have enough vertices are returned
    unchanged.
    """
    coords = [lat_lng(p) for p in points]
    if len(coords) >= count or len(coords) < 2:
        return coords

    result = [coords[0]]
    segment_count = count - 1
    last = len(coords) - 1
    for i in range(1, segment_count + 1):
        segment = i / segment_count * last
        index = int(math.floor(segment))
        fraction = segment - index
        if index >= last:
            result.append(coords[-1])
            continue
        a = coords[index]
        b = coords[index + 1]
        result.append((a[0] + (b[0] - a[0]) * fraction,
                       a[1] + (b[1] - a[1]) * fraction))
    return result
