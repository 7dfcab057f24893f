"""Resolve coordinates to the region that contains them."""

from __future__ import annotations

from typing import Sequence

from .models import Coord, Point, Region


def contains_point(point: Point, ring: Sequence[Coord]) -> bool:
    """Crossing-number test against one `(lng, lat)` ring.

    Points exactly on an edge may land on either side depending on edge
    orientation.
    """
    x = point.longitude
    y = point.latitude
    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def region_for(point: Point, regions: Sequence[Region]) -> Region | None:
    """First region, in input order, with any outer ring containing the point."""
    for region in regions:
        for polygon in region.geometry:
            if contains_point(point, polygon[0]):
                return region
    return None
