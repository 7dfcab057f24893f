"""Zoom-dependent label clustering of nearby regions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from .config import ClusteringConfig
from .geometry import planar_distance, region_center
from .models import Place, Point, Region, Viewport
from .places import PlaceIndex

_LOGGER = logging.getLogger("neighborhoodmap.clustering")


@dataclass(frozen=True, slots=True)
class Cluster:
    """One greedy group; `center_distance` is measured from its seed region."""

    members: tuple[Region, ...]
    centers: tuple[Point, ...]
    center_distance: float

    @property
    def size(self) -> int:
        return len(self.members)


class ClusterEngine:
    """Groups regions whose centres are closer than a zoom-derived distance."""

    def __init__(self, cfg: ClusteringConfig | None = None) -> None:
        self.cfg = cfg or ClusteringConfig.default()

    def should_cluster(self, latitude_span: float) -> bool:
        return latitude_span > self.cfg.zoom_threshold

    def cluster_distance(self, latitude_span: float) -> float:
        return latitude_span * self.cfg.distance_scale

    def cluster_for_viewport(
        self,
        regions: Sequence[Region],
        viewport: Viewport,
        places: PlaceIndex | Mapping[str, Sequence[Place]] | None = None,
    ) -> list[Region]:
        if not self.should_cluster(viewport.latitude_delta):
            return list(regions)
        return self.cluster(
            regions,
            self.cluster_distance(viewport.latitude_delta),
            viewport.center,
            places,
        )

    def cluster(
        self,
        regions: Sequence[Region],
        distance_threshold: float,
        map_center: Point,
        places: PlaceIndex | Mapping[str, Sequence[Place]] | None = None,
    ) -> list[Region]:
        if not regions:
            return []
        index = places if isinstance(places, PlaceIndex) else PlaceIndex(places)

        groups = group_regions(regions, distance_threshold, map_center)
        central = min(range(len(groups)), key=lambda i: groups[i].center_distance)

        clustered: list[Region] = []
        for idx, group in enumerate(groups):
            if group.size == 1:
                clustered.append(group.members[0])
                continue
            if idx == central:
                rep = _central_representative(group, map_center, index)
            else:
                rep = _peripheral_representative(group, index)
            clustered.append(_synthesize(group, rep))

        _LOGGER.debug(
            "Clustered %d regions into %d labels (threshold=%.5f)",
            len(regions),
            len(clustered),
            distance_threshold,
        )
        return clustered


def group_regions(
    regions: Sequence[Region],
    distance_threshold: float,
    map_center: Point,
) -> list[Cluster]:
    """Single greedy pass in input order; each group is seeded by the first unvisited region."""
    centers = [region_center(region) for region in regions]
    visited = [False] * len(regions)
    groups: list[Cluster] = []

    for i, seed in enumerate(regions):
        if visited[i]:
            continue
        visited[i] = True
        member_idx = [i]
        for j in range(len(regions)):
            if visited[j]:
                continue
            if planar_distance(centers[i], centers[j]) < distance_threshold:
                member_idx.append(j)
                visited[j] = True
        groups.append(
            Cluster(
                members=tuple(regions[k] for k in member_idx),
                centers=tuple(centers[k] for k in member_idx),
                center_distance=planar_distance(map_center, centers[i]),
            )
        )
    return groups


def _central_representative(group: Cluster, map_center: Point, places: PlaceIndex) -> int:
    with_places = [k for k, member in enumerate(group.members) if places.count(member.name) > 0]
    if not with_places:
        return _closest(group, range(group.size), map_center)

    best = with_places[0]
    for k in with_places[1:]:
        best_count = places.count(group.members[best].name)
        count = places.count(group.members[k].name)
        if count > best_count:
            best = k
        elif count == best_count:
            best = _closest(group, (best, k), map_center)
    return best


def _peripheral_representative(group: Cluster, places: PlaceIndex) -> int:
    best: int | None = None
    best_count = 0
    for k, member in enumerate(group.members):
        count = places.count(member.name)
        if count > best_count:
            best = k
            best_count = count
    return 0 if best is None else best


def _closest(group: Cluster, candidates: Sequence[int] | range, map_center: Point) -> int:
    if not candidates:
        raise ValueError("No candidate members to choose from")
    best = candidates[0]
    best_distance = planar_distance(map_center, group.centers[best])
    for k in candidates[1:]:
        distance = planar_distance(map_center, group.centers[k])
        if distance < best_distance:
            best = k
            best_distance = distance
    return best


def _synthesize(group: Cluster, rep_idx: int) -> Region:
    rep = group.members[rep_idx]
    if group.size == 2:
        other = group.members[1 - rep_idx]
        name = f"{rep.name} & {other.name}"
    else:
        name = f"{rep.name} (+{group.size - 1})"
    return rep.as_cluster(name=name, members=[member.name for member in group.members])
