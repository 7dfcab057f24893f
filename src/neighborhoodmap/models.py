"""Domain models shared across the geospatial core."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .links import search_url

Coord = tuple[float, float]
Ring = tuple[Coord, ...]
Polygon = tuple[Ring, ...]
MultiPolygon = tuple[Polygon, ...]

_MIN_RING_POINTS = 3


def _require_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _coord(value: Any, field_name: str) -> Coord:
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        raise ValueError(f"Expected [lng, lat] pair for '{field_name}'")
    lng, lat = value[0], value[1]
    if not isinstance(lng, (int, float)) or not isinstance(lat, (int, float)):
        raise ValueError(f"Expected numeric coordinates for '{field_name}'")
    return (float(lng), float(lat))


def parse_multipolygon(value: Any, field_name: str) -> MultiPolygon:
    """Normalize `[polygon][ring][point][lng, lat]` nesting into tuples."""
    if not isinstance(value, list) or not value:
        raise ValueError(f"Expected non-empty polygon list for '{field_name}'")
    polygons: list[Polygon] = []
    for p_idx, polygon in enumerate(value):
        if not isinstance(polygon, list) or not polygon:
            raise ValueError(f"Expected non-empty ring list for '{field_name}[{p_idx}]'")
        rings: list[Ring] = []
        for r_idx, ring in enumerate(polygon):
            if not isinstance(ring, list):
                raise ValueError(f"Expected point list for '{field_name}[{p_idx}][{r_idx}]'")
            if len(ring) < _MIN_RING_POINTS:
                raise ValueError(
                    f"Expected at least {_MIN_RING_POINTS} points for "
                    f"'{field_name}[{p_idx}][{r_idx}]', got {len(ring)}"
                )
            rings.append(
                tuple(
                    _coord(point, f"{field_name}[{p_idx}][{r_idx}][{i}]")
                    for i, point in enumerate(ring)
                )
            )
        polygons.append(tuple(rings))
    return tuple(polygons)


@dataclass(frozen=True, slots=True)
class Point:
    latitude: float
    longitude: float

    @property
    def lat(self) -> float:
        return self.latitude

    @property
    def lng(self) -> float:
        return self.longitude


@dataclass(frozen=True, slots=True)
class Color:
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not isinstance(channel, int) or channel < 0 or channel > 255:
                raise ValueError(f"Color channel out of range: {channel!r}")

    def rgba(self, alpha: float) -> str:
        return f"rgba({self.r}, {self.g}, {self.b}, {alpha})"

    def to_dict(self) -> dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Color:
        values: list[int] = []
        for key in ("r", "g", "b"):
            raw = data.get(key)
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ValueError(f"Expected numeric color channel '{key}'")
            if float(raw) != int(raw):
                raise ValueError(f"Expected integer color channel '{key}'")
            values.append(int(raw))
        return cls(r=values[0], g=values[1], b=values[2])


@dataclass(frozen=True, slots=True)
class Place:
    """A place to visit, attached to a region by name."""

    id: str
    title: str
    link: str | None = None

    def maps_url(self, locality: str) -> str:
        """Stored link, or a Google Maps search for the title."""
        if self.link:
            return self.link
        return search_url(self.title, locality)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.link is not None:
            payload["googleMapsLink"] = self.link
        return payload

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Place:
        place_id = data.get("id")
        if isinstance(place_id, int) and not isinstance(place_id, bool):
            place_id = str(place_id)
        link_raw = data.get("googleMapsLink", data.get("link"))
        link: str | None
        if link_raw is None or (isinstance(link_raw, str) and not link_raw.strip()):
            link = None
        else:
            link = _require_str(link_raw, "googleMapsLink")
        return cls(
            id=_require_str(place_id, "id"),
            title=_require_str(data.get("title"), "title"),
            link=link,
        )


@dataclass(frozen=True, slots=True)
class Region:
    """Named boundary record; cluster metadata is set only by clustering."""

    name: str
    group: str
    geometry: MultiPolygon
    properties: Mapping[str, Any] = field(default_factory=dict, hash=False)
    original_name: str | None = None
    member_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def is_cluster(self) -> bool:
        return bool(self.member_names)

    def as_cluster(self, *, name: str, members: Sequence[str]) -> Region:
        return replace(
            self,
            name=name,
            original_name=self.name,
            member_names=tuple(members),
        )

    @classmethod
    def from_feature(
        cls,
        feature: Mapping[str, Any],
        *,
        name_property: str = "name",
        group_property: str = "group",
    ) -> Region:
        props_raw = feature.get("properties")
        if not isinstance(props_raw, Mapping):
            raise ValueError("Expected mapping for 'properties'")
        geometry_raw = feature.get("geometry")
        if not isinstance(geometry_raw, Mapping):
            raise ValueError("Expected mapping for 'geometry'")

        name = _first_property(props_raw, (name_property, "name"), "properties.name")
        group = _first_property(props_raw, (group_property, "group"), "properties.group")

        geom_type = geometry_raw.get("type")
        coordinates = geometry_raw.get("coordinates")
        if geom_type == "Polygon":
            coordinates = [coordinates]
        elif geom_type != "MultiPolygon":
            raise ValueError(f"Unsupported geometry type for '{name}': {geom_type!r}")

        return cls(
            name=name,
            group=group,
            geometry=parse_multipolygon(coordinates, f"{name}.coordinates"),
            properties=dict(props_raw),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name, "group": self.group}
        if self.is_cluster:
            payload["original_name"] = self.original_name
            payload["member_names"] = list(self.member_names)
        return payload


@dataclass(frozen=True, slots=True)
class Viewport:
    """Visible map area as reported by the map widget."""

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float

    @property
    def center(self) -> Point:
        return Point(latitude=self.latitude, longitude=self.longitude)


def _first_property(props: Mapping[str, Any], keys: Sequence[str], field_name: str) -> str:
    for key in keys:
        value = props.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    raise ValueError(f"Expected non-empty string for '{field_name}' (tried {', '.join(keys)})")
