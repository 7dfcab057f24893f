"""Validation layer for config, boundary data and the places table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .boundaries import load_feature_collection
from .config import AppConfig
from .geometry import open_ring, ring_area
from .links import is_google_maps_link
from .models import Region
from .places import PlaceIndex, load_places
from .util import format_name_list


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Top-level input and schema validator."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        regions = self._validate_boundaries(report)
        places = self._validate_places(report)
        if regions:
            self._validate_geometry(report, regions)
            self._validate_place_references(report, regions, places)
        self._validate_place_links(report, places)
        return report

    def _validate_boundaries(self, report: ValidationReport) -> list[Region]:
        path = self.cfg.paths.boundaries
        if not path.exists():
            report.add_error(f"Missing boundary file: {path}")
            return []
        try:
            regions = load_feature_collection(
                path,
                name_property=self.cfg.boundaries.name_property,
                group_property=self.cfg.boundaries.group_property,
            )
        except Exception as exc:
            report.add_error(f"Failed parsing boundary file '{path}': {exc}")
            return []
        if not regions:
            report.add_error(f"Boundary file has no features: {path}")
            return []
        groups = {region.group for region in regions}
        report.add_info(f"Loaded {len(regions)} regions in {len(groups)} groups from {path}")
        return regions

    def _validate_places(self, report: ValidationReport) -> PlaceIndex:
        path = self.cfg.paths.places
        if not path.exists():
            report.add_info(f"No places file at {path}; treating every region as empty")
            return PlaceIndex()
        try:
            places = load_places(path)
        except Exception as exc:
            report.add_error(f"Failed parsing places file '{path}': {exc}")
            return PlaceIndex()
        total = sum(places.count(name) for name in places)
        report.add_info(f"Loaded {total} places across {len(places)} regions")
        return places

    def _validate_geometry(self, report: ValidationReport, regions: Sequence[Region]) -> None:
        degenerate: list[str] = []
        invalid: list[str] = []
        for region in regions:
            for polygon in region.geometry:
                outer = polygon[0]
                if len(set(open_ring(outer))) < 3 or ring_area(outer) < 1e-10:
                    degenerate.append(region.name)
                    break
                if not _is_valid_ring(outer):
                    invalid.append(region.name)
                    break
        if degenerate:
            report.add_warning(
                "Degenerate outer rings (centroid falls back to vertex mean): "
                + format_name_list(degenerate)
            )
        if invalid:
            report.add_warning("Self-intersecting outer rings: " + format_name_list(invalid))

    def _validate_place_references(
        self,
        report: ValidationReport,
        regions: Sequence[Region],
        places: PlaceIndex,
    ) -> None:
        known = {region.name for region in regions}
        unknown = [name for name in places if name not in known]
        if unknown:
            report.add_warning("Places reference unknown regions: " + format_name_list(unknown))

    def _validate_place_links(self, report: ValidationReport, places: PlaceIndex) -> None:
        odd_links: list[str] = []
        for name in places:
            for place in places.get(name):
                if place.link is not None and not is_google_maps_link(place.link):
                    odd_links.append(f"{name}/{place.id}")
        if odd_links:
            report.add_warning("Place links that are not Google Maps URLs: " + format_name_list(odd_links))


def _is_valid_ring(ring: Sequence[tuple[float, float]]) -> bool:
    polygon_factory = _require_shapely_polygon_factory()
    return bool(polygon_factory(ring).is_valid)


def _require_shapely_polygon_factory() -> Any:
    try:
        from shapely.geometry import Polygon
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for boundary validity checks") from exc
    return Polygon


def format_report_lines(report: ValidationReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Validation completed with no errors.")
    return lines
