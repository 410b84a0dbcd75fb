from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..models import (
    Distribution,
    Planogram,
    PriceHistory,
    Product,
    Store,
    User,
    decode_list,
    decode_model,
)
from .base import BaseClient, segment


@dataclass
class DirectoryClient(BaseClient):
    """Read-only reference data: stores, products, users, prices, planograms."""

    def list_stores(self) -> list[Store]:
        return decode_list(self._request("GET", "/stores/stores", operation="stores.list"), Store)

    def get_store(self, store_id: str) -> Store | None:
        return decode_model(self._request("GET", f"/stores/stores/{segment(store_id)}", operation="stores.get"), Store)

    def stores_by_city(self, city_id: str) -> list[Store]:
        data = self._request("GET", f"/stores/stores/by-city/{segment(city_id)}", operation="stores.by_city")
        return decode_list(data, Store)

    def list_products(self) -> list[Product]:
        return decode_list(self._request("GET", "/products/products", operation="products.list"), Product)

    def get_product(self, product_id: str) -> Product | None:
        data = self._request("GET", f"/products/products/{segment(product_id)}", operation="products.get")
        return decode_model(data, Product)

    def products_by_category(self, category: str) -> list[Product]:
        data = self._request(
            "GET", f"/products/products/category/{segment(category)}", operation="products.by_category"
        )
        return decode_list(data, Product)

    def list_users(self) -> list[User]:
        return decode_list(self._request("GET", "/users/users", operation="users.list"), User)

    def get_user(self, user_id: str) -> User | None:
        return decode_model(self._request("GET", f"/users/users/{segment(user_id)}", operation="users.get"), User)

    def latest_price(self, product_id: str) -> PriceHistory | None:
        data = self._request(
            "GET", f"/histprices/histprices/latest/{segment(product_id)}", operation="histprices.latest"
        )
        return decode_model(data, PriceHistory)

    def price_on(self, product_id: str, day: date) -> PriceHistory | None:
        data = self._request(
            "GET",
            f"/histprices/histprices/by-date/{segment(product_id)}/{day.isoformat()}",
            operation="histprices.by_date",
        )
        return decode_model(data, PriceHistory)

    def price_history(self, product_id: str) -> list[PriceHistory]:
        data = self._request(
            "GET", f"/histprices/histprices/product/{segment(product_id)}", operation="histprices.by_product"
        )
        return decode_list(data, PriceHistory)

    def list_planograms(self) -> list[Planogram]:
        return decode_list(self._request("GET", "/planograms/planograms", operation="planograms.list"), Planogram)

    def distributions(self, planogram_id: str) -> list[Distribution]:
        data = self._request(
            "GET",
            f"/distributions/distributions/planogram/{segment(planogram_id)}",
            operation="distributions.by_planogram",
        )
        return decode_list(data, Distribution)
