"""Places-to-visit table keyed by region name."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

from .models import Place, Region


class PlaceIndex:
    """Read-only, insertion-ordered view of `region name -> places`.

    A missing region is the same as one with no places.
    """

    def __init__(self, places: Mapping[str, Sequence[Place]] | None = None) -> None:
        self._places: dict[str, tuple[Place, ...]] = {}
        for name, items in (places or {}).items():
            self._places[name] = tuple(items)

    def __contains__(self, name: object) -> bool:
        return name in self._places

    def __iter__(self) -> Iterator[str]:
        return iter(self._places)

    def __len__(self) -> int:
        return len(self._places)

    def get(self, name: str) -> tuple[Place, ...]:
        return self._places.get(name, ())

    def count(self, name: str) -> int:
        return len(self._places.get(name, ()))

    def places_for(self, region: Region) -> tuple[Place, ...]:
        """Places of a region, or of every member when it is a cluster."""
        if not region.is_cluster:
            return self.get(region.name)
        collected: list[Place] = []
        for member in region.member_names:
            collected.extend(self.get(member))
        return tuple(collected)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {name: [place.to_dict() for place in items] for name, items in self._places.items()}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PlaceIndex:
        places: dict[str, list[Place]] = {}
        for name, items in raw.items():
            if not isinstance(name, str) or not name.strip():
                raise ValueError("Place table keys must be non-empty region names")
            if not isinstance(items, list):
                raise ValueError(f"Expected list of places for '{name}'")
            parsed: list[Place] = []
            for idx, item in enumerate(items):
                if not isinstance(item, Mapping):
                    raise ValueError(f"Expected mapping at '{name}[{idx}]'")
                parsed.append(Place.from_mapping(item))
            places[name] = parsed
        return cls(places)


def load_places(path: Path) -> PlaceIndex:
    """Load the optional places table; a missing file means no places."""
    if not path.exists():
        return PlaceIndex()
    with path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if raw is None:
        return PlaceIndex()
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")
    return PlaceIndex.from_mapping(raw)
