"""Point-in-zone tests on latitude/longitude pairs."""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def point_in_polygon(lat: float, lng: float, vertices: list[tuple[float, float]]) -> bool:
    """Ray casting. Points exactly on an edge may land on either side."""
    inside = False
    j = len(vertices) - 1
    for i, (lat_i, lng_i) in enumerate(vertices):
        lat_j, lng_j = vertices[j]
        if (lng_i > lng) != (lng_j > lng):
            crossing = (lat_j - lat_i) * (lng - lng_i) / (lng_j - lng_i) + lat_i
            if lat < crossing:
                inside = not inside
        j = i
    return inside


def zone_contains(zone, lat: float, lng: float) -> bool | None:
    """Whether ``zone`` covers the point.

    Returns ``None`` when the zone carries no usable geometry.
    """
    vertices = zone.vertices
    if len(vertices) >= 3:
        return point_in_polygon(lat, lng, vertices)
    if zone.has_center and zone.max_delivery_distance:
        return haversine_km(zone.center_lat, zone.center_lng, lat, lng) <= zone.max_delivery_distance
    return None
