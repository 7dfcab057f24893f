"""Neighborhood boundary loading from GeoJSON feature collections."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from .models import Region


def load_feature_collection(
    path: Path,
    *,
    name_property: str = "ntaname",
    group_property: str = "boroname",
) -> list[Region]:
    """Load and validate region boundaries, keeping feature order."""
    if not path.exists():
        raise FileNotFoundError(f"Boundary file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict):
        raise ValueError(f"Expected GeoJSON object in {path}")
    return regions_from_collection(
        raw,
        name_property=name_property,
        group_property=group_property,
        source=str(path),
    )


def regions_from_collection(
    raw: Mapping[str, Any],
    *,
    name_property: str = "ntaname",
    group_property: str = "boroname",
    source: str = "<collection>",
) -> list[Region]:
    if raw.get("type") != "FeatureCollection":
        raise ValueError(f"Expected FeatureCollection in {source}")
    features = raw.get("features")
    if not isinstance(features, list):
        raise ValueError(f"Expected list for 'features' in {source}")

    regions: list[Region] = []
    seen_names: set[str] = set()
    for idx, feature in enumerate(features):
        if not isinstance(feature, Mapping):
            raise ValueError(f"Expected mapping at features[{idx}] in {source}")
        try:
            region = Region.from_feature(
                feature,
                name_property=name_property,
                group_property=group_property,
            )
        except ValueError as exc:
            raise ValueError(f"Invalid feature at features[{idx}] in {source}: {exc}") from exc
        if region.name in seen_names:
            raise ValueError(f"Duplicate region name '{region.name}' in {source}")
        seen_names.add(region.name)
        regions.append(region)
    return regions
