"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    return _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    boundaries: Path
    places: Path
    storage: Path
    build_root: Path
    reports_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.build_root, self.reports_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        build_root = _path_from_cfg(raw.get("build_root", "build"), "paths.build_root", root_dir)
        return cls(
            boundaries=_path_from_cfg(raw.get("boundaries"), "paths.boundaries", root_dir),
            places=_path_from_cfg(raw.get("places"), "paths.places", root_dir),
            storage=_path_from_cfg(
                raw.get("storage", str(build_root / "storage.json")), "paths.storage", root_dir
            ),
            build_root=build_root,
            reports_dir=_path_from_cfg(
                raw.get("reports_dir", str(build_root / "reports")), "paths.reports_dir", root_dir
            ),
            logs_dir=_path_from_cfg(
                raw.get("logs_dir", str(build_root / "logs")), "paths.logs_dir", root_dir
            ),
        )


@dataclass(frozen=True, slots=True)
class BoundariesConfig:
    name_property: str
    group_property: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BoundariesConfig:
        return cls(
            name_property=_str(raw.get("name_property", "ntaname"), "boundaries.name_property"),
            group_property=_str(raw.get("group_property", "boroname"), "boundaries.group_property"),
        )


@dataclass(frozen=True, slots=True)
class ClusteringConfig:
    zoom_threshold: float
    distance_scale: float

    @classmethod
    def default(cls) -> ClusteringConfig:
        return cls(zoom_threshold=0.05, distance_scale=0.3)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ClusteringConfig:
        zoom_threshold = _float(raw.get("zoom_threshold", 0.05), "clustering.zoom_threshold")
        distance_scale = _float(raw.get("distance_scale", 0.3), "clustering.distance_scale")
        if zoom_threshold < 0:
            raise ValueError("clustering.zoom_threshold must be >= 0")
        if distance_scale <= 0:
            raise ValueError("clustering.distance_scale must be > 0")
        return cls(zoom_threshold=zoom_threshold, distance_scale=distance_scale)


@dataclass(frozen=True, slots=True)
class ColorsConfig:
    storage_key: str
    hydrate_timeout_s: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ColorsConfig:
        hydrate_timeout_s = _float(raw.get("hydrate_timeout_s", 5.0), "colors.hydrate_timeout_s")
        if hydrate_timeout_s <= 0:
            raise ValueError("colors.hydrate_timeout_s must be > 0")
        return cls(
            storage_key=_str(raw.get("storage_key", "neighborhood_colors"), "colors.storage_key"),
            hydrate_timeout_s=hydrate_timeout_s,
        )


@dataclass(frozen=True, slots=True)
class ViewportConfig:
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ViewportConfig:
        latitude = _float(raw.get("latitude", 40.7589), "viewport.latitude")
        longitude = _float(raw.get("longitude", -73.9851), "viewport.longitude")
        if latitude < -90.0 or latitude > 90.0:
            raise ValueError("viewport.latitude must be between -90 and 90")
        if longitude < -180.0 or longitude > 180.0:
            raise ValueError("viewport.longitude must be between -180 and 180")
        latitude_delta = _float(raw.get("latitude_delta", 0.1), "viewport.latitude_delta")
        longitude_delta = _float(raw.get("longitude_delta", 0.1), "viewport.longitude_delta")
        if latitude_delta <= 0 or longitude_delta <= 0:
            raise ValueError("viewport deltas must be > 0")
        return cls(
            latitude=latitude,
            longitude=longitude,
            latitude_delta=latitude_delta,
            longitude_delta=longitude_delta,
        )


@dataclass(frozen=True, slots=True)
class LinksConfig:
    search_locality: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LinksConfig:
        return cls(
            search_locality=_str(raw.get("search_locality", "New York, NY"), "links.search_locality")
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    boundaries: BoundariesConfig
    clustering: ClusteringConfig
    colors: ColorsConfig
    viewport: ViewportConfig
    links: LinksConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            boundaries=BoundariesConfig.from_mapping(
                _optional_mapping(raw.get("boundaries"), "boundaries")
            ),
            clustering=ClusteringConfig.from_mapping(
                _optional_mapping(raw.get("clustering"), "clustering")
            ),
            colors=ColorsConfig.from_mapping(_optional_mapping(raw.get("colors"), "colors")),
            viewport=ViewportConfig.from_mapping(_optional_mapping(raw.get("viewport"), "viewport")),
            links=LinksConfig.from_mapping(_optional_mapping(raw.get("links"), "links")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
