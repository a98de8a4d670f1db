"""Great-circle distance helpers."""

import math

EARTH_RADIUS_M: float = 6_371_000.0


def haversine_m(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Haversine distance in meters between two (lat, lng) pairs."""
    phi1 = math.radians(a[0])
    phi2 = math.radians(b[0])
    d_phi = math.radians(b[0] - a[0])
    d_lambda = math.radians(b[1] - a[1])

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    h = min(1.0, h)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def speed_kmh(distance_m: float, duration_s: float) -> float:
    """Implied average speed; 0 when duration is not positive."""
    if duration_s <= 0:
        return 0.0
    return distance_m / duration_s * 3.6
