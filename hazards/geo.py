import math
from typing import Tuple
from .model import Coords

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE_LAT = 111320.0

BoundingBox = Tuple[float, float, float, float]  # (min_lat, max_lat, min_lon, max_lon); min_lon > max_lon wraps ±180

def haversine_m(a: Coords, b: Coords) -> float:
    """Great-circle distance between two (lat, lon) points in meters."""
    phi1 = math.radians(a[0])
    phi2 = math.radians(b[0])
    dphi = math.radians(b[0] - a[0])
    dlam = math.radians(b[1] - a[1])
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

def haversine_km(a: Coords, b: Coords) -> float:
    return haversine_m(a, b) / 1000.0

def _normalize_lon(lon: float) -> float:
    return (lon + 540.0) % 360.0 - 180.0

def _stretched_lat_delta(phi1: float, phi2: float) -> float:
    # Difference in Mercator-projected latitude
    return math.log(math.tan(math.pi / 4 + phi2 / 2) / math.tan(math.pi / 4 + phi1 / 2))

def _rhumb_components(a: Coords, b: Coords) -> Tuple[float, float, float]:
    """Return (dphi, dpsi, dlam) in radians with dlam taking the short way round."""
    phi1 = math.radians(a[0])
    phi2 = math.radians(b[0])
    dphi = phi2 - phi1
    dlam = math.radians(b[1] - a[1])
    if abs(dlam) > math.pi:
        dlam = dlam - math.copysign(2 * math.pi, dlam)
    dpsi = _stretched_lat_delta(phi1, phi2)
    return dphi, dpsi, dlam

def rhumb_distance_m(a: Coords, b: Coords) -> float:
    """Distance along the rhumb line (constant bearing) from a to b in meters."""
    dphi, dpsi, dlam = _rhumb_components(a, b)
    q = dphi / dpsi if abs(dpsi) > 1e-12 else math.cos(math.radians(a[0]))
    return math.sqrt(dphi * dphi + q * q * dlam * dlam) * EARTH_RADIUS_M

def rhumb_bearing_deg(a: Coords, b: Coords) -> float:
    """Constant compass bearing from a to b, degrees clockwise from north."""
    _, dpsi, dlam = _rhumb_components(a, b)
    return (math.degrees(math.atan2(dlam, dpsi)) + 360.0) % 360.0

def rhumb_destination(start: Coords, distance_m: float, bearing_deg: float) -> Coords:
    """Point reached by travelling distance_m from start on a constant bearing."""
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(start[0])
    lam1 = math.radians(start[1])

    dphi = delta * math.cos(theta)
    phi2 = phi1 + dphi
    # Clamp over-the-pole travel back into range
    if abs(phi2) > math.pi / 2:
        phi2 = math.copysign(math.pi, phi2) - phi2

    dpsi = _stretched_lat_delta(phi1, phi2) if abs(phi2) < math.pi / 2 else 0.0
    q = dphi / dpsi if abs(dpsi) > 1e-12 else math.cos(phi1)
    dlam = delta * math.sin(theta) / q if abs(q) > 1e-12 else 0.0

    return (math.degrees(phi2), _normalize_lon(math.degrees(lam1 + dlam)))

def destination_point(start: Coords, distance_m: float, bearing_deg: float) -> Coords:
    """Great-circle destination from start given distance and initial bearing."""
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    phi1 = math.radians(start[0])
    lam1 = math.radians(start[1])

    sin_phi2 = math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta)
    phi2 = math.asin(max(-1.0, min(1.0, sin_phi2)))
    y = math.sin(theta) * math.sin(delta) * math.cos(phi1)
    x = math.cos(delta) - math.sin(phi1) * sin_phi2
    lam2 = lam1 + math.atan2(y, x)

    return (math.degrees(phi2), _normalize_lon(math.degrees(lam2)))

def bounding_box(center: Coords, radius_m: float) -> BoundingBox:
    """Lat/lon box enclosing a circle, widening longitude by 1/cos(lat).

    A box crossing the antimeridian comes back with min_lon > max_lon.
    """
    dlat = radius_m / METERS_PER_DEGREE_LAT
    cos_lat = max(math.cos(math.radians(center[0])), 1e-9)
    dlon = radius_m / (METERS_PER_DEGREE_LAT * cos_lat)
    if dlon >= 180.0:
        min_lon, max_lon = -180.0, 180.0
    else:
        min_lon, max_lon = center[1] - dlon, center[1] + dlon
        if min_lon < -180.0 or max_lon > 180.0:
            min_lon, max_lon = _normalize_lon(min_lon), _normalize_lon(max_lon)
    return (center[0] - dlat, center[0] + dlat, min_lon, max_lon)

def in_box(point: Coords, box: BoundingBox) -> bool:
    min_lat, max_lat, min_lon, max_lon = box
    if not min_lat <= point[0] <= max_lat:
        return False
    if min_lon <= max_lon:
        return min_lon <= point[1] <= max_lon
    # Wrapped box: [min_lon, 180] plus [-180, max_lon]
    return point[1] >= min_lon or point[1] <= max_lon
