import math
from collections.abc import Iterable

from app.schemas.hospital import HospitalRecord

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def with_distances(
    hospitals: Iterable[HospitalRecord],
    origin: tuple[float, float] | None,
) -> list[HospitalRecord]:
    """Copies of the hospitals carrying their distance from `origin` (km, 0.1 precision)"""
    if origin is None:
        return list(hospitals)
    lat, lng = origin
    result = []
    for h in hospitals:
        if h.latitude is None or h.longitude is None:
            result.append(h.model_copy(update={"distance": None}))
            continue
        km = round(haversine_km(lat, lng, h.latitude, h.longitude), 1)
        result.append(h.model_copy(update={"distance": km}))
    return result
