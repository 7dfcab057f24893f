"""CLI entrypoint for the neighborhood map core."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timezone
from typing import Sequence

from .boundaries import load_feature_collection
from .clustering import ClusterEngine
from .colors import ColorAssigner
from .config import AppConfig, load_config
from .labels import build_labels
from .locate import region_for
from .models import Point, Region, Viewport
from .places import load_places
from .storage import JsonFileStore
from .util import ensure_directories, setup_logging, write_json
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("neighborhoodmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neighborhoodmap",
        description="Neighborhood map geospatial core.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    validate_p = subparsers.add_parser("validate", help="Validate config, boundaries and places.")
    add_common(validate_p)

    locate_p = subparsers.add_parser("locate", help="Find the region containing a coordinate.")
    add_common(locate_p)
    locate_p.add_argument("--lat", type=float, required=True, help="Latitude in degrees.")
    locate_p.add_argument("--lng", type=float, required=True, help="Longitude in degrees.")

    cluster_p = subparsers.add_parser(
        "cluster",
        help="Cluster region labels for a viewport and write a JSON report.",
    )
    add_common(cluster_p)
    cluster_p.add_argument("--lat", type=float, default=None, help="Viewport centre latitude.")
    cluster_p.add_argument("--lng", type=float, default=None, help="Viewport centre longitude.")
    cluster_p.add_argument(
        "--span",
        type=float,
        default=None,
        help="Viewport latitude span (zoom level) in degrees.",
    )

    colors_p = subparsers.add_parser("colors", help="Assign and persist a color for every region.")
    add_common(colors_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "neighborhoodmap.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _load_regions(cfg: AppConfig) -> list[Region]:
    return load_feature_collection(
        cfg.paths.boundaries,
        name_property=cfg.boundaries.name_property,
        group_property=cfg.boundaries.group_property,
    )


def _run_validate(cfg: AppConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_locate(cfg: AppConfig, *, lat: float, lng: float) -> int:
    regions = _load_regions(cfg)
    places = load_places(cfg.paths.places)
    region = region_for(Point(latitude=lat, longitude=lng), regions)
    if region is None:
        LOGGER.info("No region contains (%.6f, %.6f)", lat, lng)
        return 1
    LOGGER.info("(%.6f, %.6f) is in %s, %s", lat, lng, region.name, region.group)
    for place in places.places_for(region):
        LOGGER.info("  - %s: %s", place.title, place.maps_url(cfg.links.search_locality))
    return 0


def _run_cluster(
    cfg: AppConfig,
    *,
    lat: float | None,
    lng: float | None,
    span: float | None,
) -> int:
    regions = _load_regions(cfg)
    places = load_places(cfg.paths.places)
    viewport = Viewport(
        latitude=cfg.viewport.latitude if lat is None else lat,
        longitude=cfg.viewport.longitude if lng is None else lng,
        latitude_delta=cfg.viewport.latitude_delta if span is None else span,
        longitude_delta=cfg.viewport.longitude_delta,
    )
    if viewport.latitude_delta <= 0:
        LOGGER.error("Viewport span must be > 0, got %s", viewport.latitude_delta)
        return 1

    engine = ClusterEngine(cfg.clustering)
    clustered = engine.cluster_for_viewport(regions, viewport, places)
    labels = build_labels(clustered, places)

    output_path = cfg.paths.reports_dir / "cluster_report.json"
    write_json(
        output_path,
        {
            "meta": {
                "generated_at_utc": datetime.now(timezone.utc).isoformat(),
                "viewport": {
                    "latitude": viewport.latitude,
                    "longitude": viewport.longitude,
                    "latitude_delta": viewport.latitude_delta,
                },
                "clustered": engine.should_cluster(viewport.latitude_delta),
                "distance_threshold": engine.cluster_distance(viewport.latitude_delta),
                "regions_total": len(regions),
                "labels_total": len(labels),
            },
            "labels": [label.to_dict() for label in labels],
        },
    )
    LOGGER.info("Clustered %d regions into %d labels", len(regions), len(labels))
    LOGGER.info("Cluster report written to %s", output_path)
    return 0


def _run_colors(cfg: AppConfig) -> int:
    regions = _load_regions(cfg)
    assigner = ColorAssigner(JsonFileStore(cfg.paths.storage), storage_key=cfg.colors.storage_key)
    try:
        assigner.hydrate()
        if not assigner.wait_ready(cfg.colors.hydrate_timeout_s):
            LOGGER.error(
                "Color cache not ready after %.1fs; refusing to assign colors.",
                cfg.colors.hydrate_timeout_s,
            )
            return 1
        cached = len(assigner.snapshot())
        for region in regions:
            color = assigner.color_for(region.name)
            LOGGER.debug("%s -> %s", region.name, color.rgba(0.6))
    finally:
        assigner.close()
    LOGGER.info(
        "Colors: %d regions, %d previously cached, store %s",
        len(regions),
        cached,
        cfg.paths.storage,
    )
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "validate":
        return _run_validate(cfg)
    if command == "locate":
        return _run_locate(cfg, lat=float(args.lat), lng=float(args.lng))
    if command == "cluster":
        return _run_cluster(cfg, lat=args.lat, lng=args.lng, span=args.span)
    if command == "colors":
        return _run_colors(cfg)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
