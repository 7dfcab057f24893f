"""Google Maps link helpers for places."""

from __future__ import annotations

from urllib.parse import quote

_SEARCH_BASE_URL = "https://www.google.com/maps/search/"
_MAPS_URL_MARKERS = (
    "google.com/maps",
    "maps.google.com",
    "goo.gl/maps",
    "maps.app.goo.gl",
)


def is_google_maps_link(url: str) -> bool:
    lowered = url.strip().casefold()
    return any(marker in lowered for marker in _MAPS_URL_MARKERS)


def search_url(text: str, locality: str) -> str:
    """Google Maps search URL for a free-text place within a locality."""
    query = text.strip()
    if not query:
        raise ValueError("Search text must be non-empty")
    if locality.strip():
        query = f"{query}, {locality.strip()}"
    return _SEARCH_BASE_URL + quote(query, safe="")
