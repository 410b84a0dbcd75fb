from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from orderit_client_sdk.directory_cache import DirectoryCache
from orderit_client_sdk.exceptions import NotFoundError, ServerError
from orderit_client_sdk.models import Product, Store


class FakeClock:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class FakeDirectoryClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.missing: set[str] = set()
        self.failing: set[str] = set()
        self.delay = 0.0
        self._lock = threading.Lock()

    def _record(self, kind: str, key: str | None) -> None:
        with self._lock:
            self.calls.append((kind, key))
        if self.delay:
            time.sleep(self.delay)
        if key in self.failing:
            raise ServerError(code="SERVER_ERROR", message="boom", details=None, trace_id=None, status_code=500)
        if key in self.missing:
            raise NotFoundError(code="NOT_FOUND", message="missing", details=None, trace_id=None, status_code=404)

    def get_product(self, product_id: str) -> Product:
        self._record("product", product_id)
        return Product(id=product_id, name=f"Product {product_id}")

    def get_store(self, store_id: str) -> Store:
        self._record("store", store_id)
        return Store(id=store_id, name=f"Store {store_id}")

    def list_stores(self) -> list[Store]:
        self._record("stores", None)
        return [Store(id="s-1", name="Centro")]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client() -> FakeDirectoryClient:
    return FakeDirectoryClient()


def test_hits_are_served_until_ttl_expires(client, clock) -> None:
    cache = DirectoryCache(client, ttl_seconds=60, now=clock)

    assert cache.get_product("p-1").name == "Product p-1"
    clock.value += 59
    assert cache.get_product("p-1").name == "Product p-1"
    assert client.calls == [("product", "p-1")]

    clock.value += 2
    cache.get_product("p-1")
    assert client.calls == [("product", "p-1"), ("product", "p-1")]


def test_not_found_is_cached_as_none(client, clock) -> None:
    client.missing.add("p-404")
    cache = DirectoryCache(client, now=clock)

    assert cache.get_product("p-404") is None
    assert cache.get_product("p-404") is None
    assert client.calls == [("product", "p-404")]


def test_other_errors_propagate_and_are_not_cached(client, clock) -> None:
    client.failing.add("p-500")
    cache = DirectoryCache(client, now=clock)

    with pytest.raises(ServerError):
        cache.get_product("p-500")
    with pytest.raises(ServerError):
        cache.get_product("p-500")
    assert len(client.calls) == 2
    assert len(cache) == 0


def test_blank_ids_do_not_fetch(client, clock) -> None:
    cache = DirectoryCache(client, now=clock)

    assert cache.get_product("") is None
    assert cache.get_store(None) is None
    assert client.calls == []


def test_oldest_entry_is_evicted(client, clock) -> None:
    cache = DirectoryCache(client, max_entries=2, now=clock)

    cache.get_product("p-1")
    cache.get_product("p-2")
    cache.get_product("p-3")
    assert len(cache) == 2

    cache.get_product("p-3")
    cache.get_product("p-1")
    assert client.calls.count(("product", "p-3")) == 1
    assert client.calls.count(("product", "p-1")) == 2


def test_invalidate_by_key_and_kind(client, clock) -> None:
    cache = DirectoryCache(client, now=clock)
    cache.get_product("p-1")
    cache.get_product("p-2")
    cache.list_stores()

    cache.invalidate("product", "p-1")
    cache.get_product("p-1")
    cache.get_product("p-2")
    assert client.calls.count(("product", "p-1")) == 2
    assert client.calls.count(("product", "p-2")) == 1

    cache.invalidate("product")
    cache.get_product("p-2")
    cache.list_stores()
    assert client.calls.count(("product", "p-2")) == 2
    assert client.calls.count(("stores", None)) == 1

    cache.clear()
    assert len(cache) == 0


def test_concurrent_misses_fetch_once(client, clock) -> None:
    client.delay = 0.05
    cache = DirectoryCache(client, now=clock)

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: cache.get_store("s-9"), range(8)))

    assert {store.name for store in results} == {"Store s-9"}
    assert client.calls == [("store", "s-9")]


class FlakyProductClient:
    """First fetch blocks until released and then fails; later fetches succeed."""

    def __init__(self) -> None:
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0
        self.slot_kept_for_retry: bool | None = None
        self.cache: DirectoryCache | None = None

    def get_product(self, product_id: str) -> Product:
        self.calls += 1
        if self.calls == 1:
            self.entered.set()
            self.release.wait(timeout=5)
            raise ServerError(code="SERVER_ERROR", message="boom", details=None, trace_id=None, status_code=500)
        self.slot_kept_for_retry = ("product", product_id) in self.cache._loading
        return Product(id=product_id, name="Cola")


def _wait_for_holders(cache: DirectoryCache, key, count: int) -> None:
    deadline = time.monotonic() + 5
    while time.monotonic() < deadline:
        with cache._lock:
            slot = cache._loading.get(key)
            if slot is not None and slot.holders >= count:
                return
        time.sleep(0.005)
    raise AssertionError(f"{count} threads never queued for {key}")


def test_failed_load_keeps_lock_for_waiting_thread(clock) -> None:
    client = FlakyProductClient()
    cache = DirectoryCache(client, now=clock)
    client.cache = cache
    errors: list[Exception] = []
    results: list[Product | None] = []

    def first() -> None:
        try:
            cache.get_product("p-1")
        except ServerError as exc:
            errors.append(exc)

    failing = threading.Thread(target=first)
    failing.start()
    assert client.entered.wait(timeout=5)
    waiting = threading.Thread(target=lambda: results.append(cache.get_product("p-1")))
    waiting.start()
    _wait_for_holders(cache, ("product", "p-1"), 2)
    client.release.set()
    failing.join(timeout=5)
    waiting.join(timeout=5)

    assert len(errors) == 1
    assert results[0].name == "Cola"
    assert client.calls == 2
    assert client.slot_kept_for_retry is True
    assert cache._loading == {}
