from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Sequence

import pytest

from neighborhoodmap.models import Region


def square(x0: float, y0: float, size: float = 1.0, *, closed: bool = True) -> tuple:
    ring = ((x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size))
    return ring + ((x0, y0),) if closed else ring


def triangle(dx: float = 0.0, dy: float = 0.0) -> tuple:
    return ((0 + dx, 0 + dy), (1 + dx, 0 + dy), (0.5 + dx, 1 + dy), (0 + dx, 0 + dy))


def make_region(name: str, *rings: Sequence[tuple[float, float]], group: str = "TestBoro") -> Region:
    """One single-ring polygon per ring."""
    return Region(
        name=name,
        group=group,
        geometry=tuple((tuple(ring),) for ring in rings),
        properties={"ntaname": name, "boroname": group},
    )


class FakeStore:
    """In-memory key-value store with failure and latency switches."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})
        self.get_calls = 0
        self.set_calls = 0
        self.fail_get = False
        self.fail_set = False
        self.release_get: threading.Event | None = None

    def get_item(self, key: str) -> str | None:
        self.get_calls += 1
        if self.release_get is not None:
            self.release_get.wait(5)
        if self.fail_get:
            raise OSError("storage unavailable")
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise OSError("disk full")
        self.items[key] = value


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


def feature(name: str, coordinates: Any, *, group: str = "Manhattan", geom_type: str = "MultiPolygon") -> dict:
    return {
        "type": "Feature",
        "properties": {"ntaname": name, "boroname": group, "shape_area": 1.0},
        "geometry": {"type": geom_type, "coordinates": coordinates},
    }


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Config, boundaries and places laid out like a checkout."""
    data = tmp_path / "data"
    data.mkdir()
    collection = {
        "type": "FeatureCollection",
        "features": [
            feature("Alpha", [[[list(p) for p in square(0.0, 0.0, 0.01)]]]),
            feature("Beta", [[[list(p) for p in square(0.005, 0.0, 0.01)]]]),
            feature("Gamma", [[[list(p) for p in square(1.0, 1.0, 0.01)]]], group="Queens"),
        ],
    }
    (data / "neighborhoods.geojson").write_text(json.dumps(collection), encoding="utf-8")
    places = {"Beta": [{"id": "1", "title": "Beta Bakery"}]}
    (data / "places.json").write_text(json.dumps(places), encoding="utf-8")
    (tmp_path / "config.yaml").write_text(
        "\n".join(
            [
                "paths:",
                "  boundaries: data/neighborhoods.geojson",
                "  places: data/places.json",
                "  build_root: build",
                "viewport:",
                "  latitude: 0.005",
                "  longitude: 0.01",
                "  latitude_delta: 0.1",
                "  longitude_delta: 0.1",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return tmp_path
