"""Deterministic region colors with a persisted, memoized cache."""

from __future__ import annotations

import json
import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Mapping

from .models import Color
from .storage import KeyValueStore

DEFAULT_STORAGE_KEY = "neighborhood_colors"

# hue (360), saturation (30) and lightness (25) periods
_HASH_FOLD_MODULUS = 360 * 30 * 25
_HASH_FOLD_LIMIT = 2.0**1000

_LOGGER = logging.getLogger("neighborhoodmap.colors")


def seed_hash(seed: str) -> float:
    """Base-31 polynomial hash over UTF-16 code units.

    Accumulated as a double so that colors match caches written by other
    clients of the same storage. Very long names would overflow to `inf`;
    past `_HASH_FOLD_LIMIT` the running value is folded modulo
    `_HASH_FOLD_MODULUS`, which keeps hue, saturation and lightness
    residues stable and the result finite.
    """
    data = seed.encode("utf-16-le", "surrogatepass")
    h = 0.0
    for i in range(0, len(data), 2):
        h = h * 31 + (data[i] | (data[i + 1] << 8))
        if h > _HASH_FOLD_LIMIT:
            h = math.fmod(h, _HASH_FOLD_MODULUS)
    return h


def hsl_to_rgb(hue: float, saturation: float, lightness: float) -> Color:
    """Convert HSL (degrees, percent, percent) to rounded RGB."""
    h = hue / 360
    s = saturation / 100
    lt = lightness / 100
    a = s * min(lt, 1 - lt)

    def channel(n: int) -> int:
        k = (n + h * 12) % 12
        value = lt - a * max(min(k - 3, 9 - k, 1), -1)
        return min(255, max(0, math.floor(value * 255 + 0.5)))

    return Color(r=channel(0), g=channel(8), b=channel(4))


def color_from_seed(seed: str) -> Color:
    """Vibrant color for a name: saturation 70-100%, lightness 45-70%."""
    h = seed_hash(seed)
    hue = abs(h) % 360
    saturation = 70 + abs(h * 13) % 30
    lightness = 45 + abs(h * 7) % 25
    return hsl_to_rgb(hue, saturation, lightness)


def parse_color_cache(raw: Mapping[str, Any]) -> dict[str, Color]:
    colors: dict[str, Color] = {}
    for name, value in raw.items():
        if not isinstance(name, str) or not isinstance(value, Mapping):
            _LOGGER.warning("Skipping malformed color cache entry %r", name)
            continue
        try:
            colors[name] = Color.from_mapping(value)
        except ValueError as exc:
            _LOGGER.warning("Skipping invalid cached color for %s: %s", name, exc)
    return colors


def load_color_cache(store: KeyValueStore, key: str = DEFAULT_STORAGE_KEY) -> dict[str, Color]:
    """Read the persisted cache; any failure yields an empty cache."""
    try:
        stored = store.get_item(key)
        if not stored:
            return {}
        raw = json.loads(stored)
        if not isinstance(raw, Mapping):
            raise ValueError("Expected JSON object for color cache")
    except Exception as exc:
        _LOGGER.error("Error loading colors from storage: %s", exc)
        return {}
    return parse_color_cache(raw)


def save_color_cache(
    store: KeyValueStore,
    colors: Mapping[str, Color],
    key: str = DEFAULT_STORAGE_KEY,
) -> bool:
    """Replace the persisted cache; failures are logged, never raised."""
    payload = {name: color.to_dict() for name, color in colors.items()}
    try:
        store.set_item(key, json.dumps(payload))
    except Exception as exc:
        _LOGGER.error("Error saving colors to storage: %s", exc)
        return False
    return True


class ColorAssigner:
    """Memoized name -> color lookup backed by a key-value store.

    Lookups are synchronous and never wait on storage. Hydration and writes
    run on one background worker, in submission order, so a write queued
    after `hydrate()` always persists the merged cache.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        generator: Callable[[str], Color] = color_from_seed,
    ) -> None:
        self.storage_key = storage_key
        self._store = store
        self._generate = generator
        self._cache: dict[str, Color] = {}
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="color-store")

    @property
    def ready(self) -> bool:
        return self._ready.is_set()

    def wait_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def hydrate(self) -> Future[None]:
        return self._executor.submit(self._hydrate)

    def color_for(self, name: str) -> Color:
        with self._lock:
            cached = self._cache.get(name)
            if cached is not None:
                return cached
            color = self._generate(name)
            self._cache[name] = color
        self._schedule_write()
        return color

    def snapshot(self) -> dict[str, Color]:
        with self._lock:
            return dict(self._cache)

    def close(self) -> None:
        """Wait for queued storage work and stop the worker."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    def _hydrate(self) -> None:
        try:
            stored = load_color_cache(self._store, self.storage_key)
            with self._lock:
                # Persisted colors are authoritative over provisional ones.
                self._cache.update(stored)
            _LOGGER.debug("Hydrated %d cached colors", len(stored))
        finally:
            self._ready.set()

    def _schedule_write(self) -> None:
        with self._lock:
            if self._closed:
                _LOGGER.warning("Color assigner closed; skipping persistence")
                return
            self._executor.submit(self._persist)

    def _persist(self) -> None:
        colors = self.snapshot()
        if save_color_cache(self._store, colors, self.storage_key):
            _LOGGER.debug("Persisted %d colors", len(colors))
