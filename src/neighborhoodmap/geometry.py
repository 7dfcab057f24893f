"""Planar polygon helpers: coordinate conversion, largest part, centroid.

All math runs in raw degree space on `(lng, lat)` pairs. Rings may be
closed (last point repeats the first) or open; both give the same results.
"""

from __future__ import annotations

import math
from typing import Sequence

from .models import Coord, MultiPolygon, Point, Polygon, Region

_DEGENERATE_AREA_EPS = 1e-10


def to_lat_lng(ring: Sequence[Coord]) -> list[Point]:
    """Re-express a `(lng, lat)` ring as points, keeping order and closure."""
    return [Point(latitude=float(lat), longitude=float(lng)) for lng, lat in ring]


def drawable_rings(region: Region) -> list[list[Point]]:
    """Outer ring of every polygon, ready for the map widget."""
    return [to_lat_lng(polygon[0]) for polygon in region.geometry]


def open_ring(ring: Sequence[Coord]) -> Sequence[Coord]:
    if len(ring) > 1 and ring[-1][0] == ring[0][0] and ring[-1][1] == ring[0][1]:
        return ring[:-1]
    return ring


def ring_area(ring: Sequence[Coord]) -> float:
    """Unsigned shoelace area."""
    return abs(_signed_double_area(open_ring(ring))) / 2


def largest_polygon(geometry: MultiPolygon) -> Polygon:
    """Polygon whose outer ring has the greatest area; first one wins ties."""
    if len(geometry) == 1:
        return geometry[0]

    largest = geometry[0]
    largest_area = 0.0
    for polygon in geometry:
        area = ring_area(polygon[0])
        if area > largest_area:
            largest_area = area
            largest = polygon
    return largest


def polygon_centroid(polygon: Polygon) -> Point:
    """Area-weighted centroid of the outer ring.

    Zero-area rings (collinear or repeated points) fall back to the plain
    mean of the ring's points.
    """
    coords = open_ring(polygon[0])
    n = len(coords)
    if n == 0:
        raise ValueError("Cannot compute the centroid of an empty ring")

    area = 0.0
    cx = 0.0
    cy = 0.0
    for i in range(n):
        xi, yi = coords[i]
        xj, yj = coords[(i + 1) % n]
        cross = xi * yj - xj * yi
        area += cross
        cx += (xi + xj) * cross
        cy += (yi + yj) * cross
    area = area / 2

    if abs(area) < _DEGENERATE_AREA_EPS:
        total_lng = 0.0
        total_lat = 0.0
        for lng, lat in coords:
            total_lng += lng
            total_lat += lat
        return Point(latitude=total_lat / n, longitude=total_lng / n)

    return Point(latitude=cy / (6 * area), longitude=cx / (6 * area))


def region_center(region: Region) -> Point:
    return polygon_centroid(largest_polygon(region.geometry))


def planar_distance(a: Point, b: Point) -> float:
    """Euclidean distance in degrees (not great-circle)."""
    return math.sqrt((a.latitude - b.latitude) ** 2 + (a.longitude - b.longitude) ** 2)


def _signed_double_area(coords: Sequence[Coord]) -> float:
    n = len(coords)
    total = 0.0
    for i in range(n):
        j = (i + 1) % n
        total += coords[i][0] * coords[j][1]
        total -= coords[j][0] * coords[i][1]
    return total
