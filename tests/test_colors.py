from __future__ import annotations

import json
import logging
import math
import threading
import time

import pytest

from conftest import FakeStore
from neighborhoodmap.colors import (
    DEFAULT_STORAGE_KEY,
    ColorAssigner,
    color_from_seed,
    hsl_to_rgb,
    load_color_cache,
    save_color_cache,
    seed_hash,
)
from neighborhoodmap.models import Color

NAMES = ["Manhattan", "Brooklyn", "Queens", "Bronx", "Staten Island", "Astoria", "SoHo-Little Italy", ""]


def test_seed_hash_is_base_31_polynomial():
    assert seed_hash("") == 0
    assert seed_hash("a") == 97
    assert seed_hash("ab") == 97 * 31 + 98


def test_seed_hash_counts_utf16_code_units():
    # Astral characters contribute their surrogate pair.
    assert seed_hash("\U0001F600") == 0xD83D * 31 + 0xDE00


def test_known_color():
    # hue 97, saturation 71, lightness 49
    assert color_from_seed("a") == Color(r=104, g=214, b=36)


def test_hsl_primary_red():
    assert hsl_to_rgb(0, 100, 50) == Color(r=255, g=0, b=0)


def test_color_is_deterministic():
    assert color_from_seed("Manhattan") == color_from_seed("Manhattan")
    assert color_from_seed("Manhattan") != color_from_seed("Brooklyn")


@pytest.mark.parametrize("name", NAMES)
def test_color_is_vibrant(name):
    color = color_from_seed(name)
    channels = (color.r, color.g, color.b)

    assert all(0 <= c <= 255 for c in channels)
    lightness = (max(channels) + min(channels)) / 2 / 255
    assert 0.4 < lightness < 0.8


@pytest.mark.parametrize("name", ["x" * 220, "x" * 250, "Neighborhood " * 400])
def test_very_long_names_still_get_a_color(name):
    assert math.isfinite(seed_hash(name))

    color = color_from_seed(name)

    assert all(0 <= c <= 255 for c in (color.r, color.g, color.b))
    assert color_from_seed(name) == color


def test_short_names_are_not_folded():
    name = "x" * 150

    expected = 0.0
    for ch in name:
        expected = expected * 31 + ord(ch)
    assert seed_hash(name) == expected


def test_assigner_handles_very_long_name(fake_store):
    assigner = ColorAssigner(fake_store)
    try:
        color = assigner.color_for("y" * 300)
    finally:
        assigner.close()

    assert assigner.snapshot()["y" * 300] == color


def test_rgba_string():
    assert Color(r=1, g=2, b=3).rgba(0.2) == "rgba(1, 2, 3, 0.2)"


def test_load_color_cache_reads_json_object():
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps({"Manhattan": {"r": 255, "g": 0, "b": 0}})})

    assert load_color_cache(store) == {"Manhattan": Color(r=255, g=0, b=0)}


def test_load_color_cache_missing_key_is_empty():
    assert load_color_cache(FakeStore()) == {}


def test_load_color_cache_bad_json_is_empty(caplog):
    store = FakeStore({DEFAULT_STORAGE_KEY: "{not json"})

    with caplog.at_level(logging.ERROR, logger="neighborhoodmap.colors"):
        assert load_color_cache(store) == {}
    assert "Error loading colors from storage" in caplog.text


def test_load_color_cache_storage_error_is_empty():
    store = FakeStore()
    store.fail_get = True

    assert load_color_cache(store) == {}


def test_load_color_cache_skips_invalid_entries():
    payload = {"Good": {"r": 1, "g": 2, "b": 3}, "Bad": {"r": 300, "g": 0, "b": 0}, "Worse": "red"}
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps(payload)})

    assert load_color_cache(store) == {"Good": Color(r=1, g=2, b=3)}


def test_save_color_cache_failure_is_swallowed(caplog):
    store = FakeStore()
    store.fail_set = True

    with caplog.at_level(logging.ERROR, logger="neighborhoodmap.colors"):
        assert save_color_cache(store, {"A": Color(r=0, g=0, b=0)}) is False
    assert "Error saving colors to storage" in caplog.text


def test_assigner_not_ready_until_hydrated():
    store = FakeStore()
    store.release_get = threading.Event()
    assigner = ColorAssigner(store)
    try:
        assigner.hydrate()
        assert assigner.ready is False
        store.release_get.set()
        assert assigner.wait_ready(5)
        assert assigner.ready is True
    finally:
        assigner.close()


def test_cache_hit_skips_hash_and_persistence():
    stored = {"Manhattan": {"r": 255, "g": 0, "b": 0}}
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps(stored)})
    calls: list[str] = []

    def generator(name: str) -> Color:
        calls.append(name)
        return color_from_seed(name)

    assigner = ColorAssigner(store, generator=generator)
    assigner.hydrate().result(5)

    assert assigner.color_for("Manhattan") == Color(r=255, g=0, b=0)
    assigner.close()
    assert calls == []
    assert store.set_calls == 0


def test_cache_miss_generates_once_and_merges_into_store():
    stored = {"Manhattan": {"r": 255, "g": 0, "b": 0}}
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps(stored)})
    assigner = ColorAssigner(store)
    assigner.hydrate().result(5)

    first = assigner.color_for("Brooklyn")
    second = assigner.color_for("Brooklyn")
    assigner.close()

    assert first == second == color_from_seed("Brooklyn")
    assert store.set_calls == 1
    persisted = json.loads(store.items[DEFAULT_STORAGE_KEY])
    assert persisted["Manhattan"] == {"r": 255, "g": 0, "b": 0}
    assert persisted["Brooklyn"] == first.to_dict()


def test_lookup_before_hydration_never_drops_persisted_colors():
    stored = {"Manhattan": {"r": 255, "g": 0, "b": 0}}
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps(stored)})
    store.release_get = threading.Event()
    assigner = ColorAssigner(store)
    assigner.hydrate()

    provisional = assigner.color_for("Queens")
    store.release_get.set()
    assigner.close()

    assert provisional == color_from_seed("Queens")
    persisted = json.loads(store.items[DEFAULT_STORAGE_KEY])
    assert set(persisted) == {"Manhattan", "Queens"}
    assert assigner.color_for("Manhattan") == Color(r=255, g=0, b=0)


def test_persisted_color_wins_after_hydration():
    stored = {"Queens": {"r": 1, "g": 2, "b": 3}}
    store = FakeStore({DEFAULT_STORAGE_KEY: json.dumps(stored)})
    store.release_get = threading.Event()
    assigner = ColorAssigner(store)
    assigner.hydrate()

    assigner.color_for("Queens")
    store.release_get.set()
    assigner.wait_ready(5)
    try:
        assert assigner.color_for("Queens") == Color(r=1, g=2, b=3)
    finally:
        assigner.close()


def test_write_failure_still_returns_color(caplog):
    store = FakeStore()
    store.fail_set = True
    assigner = ColorAssigner(store)
    assigner.hydrate().result(5)

    with caplog.at_level(logging.ERROR, logger="neighborhoodmap.colors"):
        color = assigner.color_for("Bronx")
        assigner.close()

    assert color == color_from_seed("Bronx")
    assert "Error saving colors to storage" in caplog.text


def test_read_failure_still_becomes_ready():
    store = FakeStore()
    store.fail_get = True
    assigner = ColorAssigner(store)
    try:
        assigner.hydrate().result(5)
        assert assigner.ready
        assert assigner.snapshot() == {}
    finally:
        assigner.close()


def test_concurrent_misses_generate_once():
    calls: list[str] = []

    def slow_generator(name: str) -> Color:
        calls.append(name)
        time.sleep(0.01)
        return color_from_seed(name)

    assigner = ColorAssigner(FakeStore(), generator=slow_generator)
    assigner.hydrate().result(5)
    results: list[Color] = []

    def worker() -> None:
        results.append(assigner.color_for("Astoria"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assigner.close()

    assert calls == ["Astoria"]
    assert len(results) == 8
    assert len(set(results)) == 1


def test_lookup_after_close_skips_persistence():
    store = FakeStore()
    assigner = ColorAssigner(store)
    assigner.hydrate().result(5)
    assigner.close()

    assert assigner.color_for("SoHo") == color_from_seed("SoHo")
    assert store.set_calls == 0
