from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Hashable

from .clients.directory_client import DirectoryClient
from .exceptions import NotFoundError
from .models import Distribution, Planogram, PriceHistory, Product, Store, User

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Hashable]


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


@dataclass
class _LoadSlot:
    lock: threading.Lock
    holders: int = 0


class DirectoryCache:
    """Bounded read-through TTL cache over the reference-data endpoints.

    Not-found answers are cached too, so an unknown product id costs one
    request per TTL window. Writers call :meth:`invalidate` after a
    successful mutation.
    """

    def __init__(
        self,
        client: DirectoryClient,
        ttl_seconds: float = 60.0,
        max_entries: int = 512,
        now: Callable[[], float] | None = None,
    ) -> None:
        self.client = client
        self.ttl_seconds = max(1.0, ttl_seconds)
        self.max_entries = max(1, max_entries)
        self._now = now or time.monotonic
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._loading: dict[CacheKey, _LoadSlot] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_store(self, store_id: str | None) -> Store | None:
        if not store_id:
            return None
        return self._read_through(("store", store_id), lambda: self.client.get_store(store_id))

    def get_product(self, product_id: str | None) -> Product | None:
        if not product_id:
            return None
        return self._read_through(("product", product_id), lambda: self.client.get_product(product_id))

    def get_user(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return self._read_through(("user", user_id), lambda: self.client.get_user(user_id))

    def latest_price(self, product_id: str | None) -> PriceHistory | None:
        if not product_id:
            return None
        return self._read_through(("price", product_id), lambda: self.client.latest_price(product_id))

    def list_stores(self) -> list[Store]:
        return self._read_through(("stores", None), self.client.list_stores) or []

    def list_products(self) -> list[Product]:
        return self._read_through(("products", None), self.client.list_products) or []

    def list_planograms(self) -> list[Planogram]:
        return self._read_through(("planograms", None), self.client.list_planograms) or []

    def distributions(self, planogram_id: str) -> list[Distribution]:
        return (
            self._read_through(("distributions", planogram_id), lambda: self.client.distributions(planogram_id))
            or []
        )

    def invalidate(self, kind: str, key: Hashable | None = None) -> None:
        """Drop one entry, or every entry of ``kind`` when ``key`` is None."""
        with self._lock:
            if key is not None:
                self._entries.pop((kind, key), None)
                return
            stale = [cache_key for cache_key in self._entries if cache_key[0] == kind]
            for cache_key in stale:
                self._entries.pop(cache_key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _get(self, key: CacheKey) -> tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            if entry.expires_at <= self._now():
                self._entries.pop(key, None)
                return False, None
            return True, entry.value

    def _set(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, expires_at=self._now() + self.ttl_seconds)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def _claim(self, key: CacheKey) -> threading.Lock:
        with self._lock:
            slot = self._loading.get(key)
            if slot is None:
                slot = self._loading[key] = _LoadSlot(threading.Lock())
            slot.holders += 1
            return slot.lock

    def _release(self, key: CacheKey) -> None:
        with self._lock:
            slot = self._loading.get(key)
            if slot is None:
                return
            slot.holders -= 1
            # Waiting threads keep the slot, so a failed load is retried under the same lock.
            if slot.holders <= 0:
                del self._loading[key]

    def _read_through(self, key: CacheKey, loader: Callable[[], Any]) -> Any:
        hit, value = self._get(key)
        if hit:
            return value
        # One fetch per key even when the aggregator asks for it from several threads.
        lock = self._claim(key)
        try:
            with lock:
                hit, value = self._get(key)
                if hit:
                    return value
                try:
                    value = loader()
                except NotFoundError:
                    logger.info("%s %s not found, caching negative entry", key[0], key[1])
                    value = None
                self._set(key, value)
                return value
        finally:
            self._release(key)

