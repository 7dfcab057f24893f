"""Label descriptions for clustered regions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from .geometry import region_center
from .models import Point, Region
from .places import PlaceIndex

_CLUSTER_SUFFIX_RE = re.compile(r"^(.+?)\s*\(\+(\d+)\)$")


@dataclass(frozen=True, slots=True)
class RegionLabel:
    region: Region
    anchor: Point
    title: str
    cluster_count: int | None
    place_count: int

    @property
    def has_places(self) -> bool:
        return self.place_count > 0

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self.title.split("-"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.region.name,
            "title_lines": list(self.lines),
            "cluster_count": self.cluster_count,
            "place_count": self.place_count,
            "anchor": {"lat": self.anchor.latitude, "lng": self.anchor.longitude},
            "members": list(self.region.member_names),
        }


def split_cluster_name(name: str) -> tuple[str, int | None]:
    """`"Name (+3)"` -> `("Name", 3)`; other names are returned as-is."""
    match = _CLUSTER_SUFFIX_RE.match(name)
    if match is None:
        return (name, None)
    return (match.group(1), int(match.group(2)))


def build_labels(regions: Sequence[Region], places: PlaceIndex) -> list[RegionLabel]:
    labels: list[RegionLabel] = []
    for region in regions:
        title, count = (region.name, None)
        if len(region.member_names) > 1:
            title, count = split_cluster_name(region.name)
        labels.append(
            RegionLabel(
                region=region,
                anchor=region_center(region),
                title=title,
                cluster_count=count,
                place_count=len(places.places_for(region)),
            )
        )
    return labels
