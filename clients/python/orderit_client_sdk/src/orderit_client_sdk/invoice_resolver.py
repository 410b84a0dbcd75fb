from __future__ import annotations

import logging
from decimal import Decimal
from urllib.parse import quote

from .directory_cache import DirectoryCache
from .exceptions import ApiError, NotFoundError
from .models import (
    Invoice,
    InvoiceDisplay,
    InvoiceDisplayLine,
    InvoiceLine,
    Order,
    OrderLine,
    is_placeholder_name,
    looks_like_identifier,
)
from .order_aggregator import OrderAggregator

logger = logging.getLogger(__name__)

POD_IMAGE_ENDPOINT = "/api/pod-image"
PLACEHOLDER = "—"
ZERO = Decimal("0")

__all__ = [
    "InvoiceResolver",
    "build_pod_image_url",
    "looks_like_identifier",
    "resolve_pod_path",
]


def build_pod_image_url(path: str | None, endpoint: str = POD_IMAGE_ENDPOINT) -> str:
    """Turn a stored POD reference into something a browser can load.

    Data URLs and absolute http(s) URLs are already loadable; bare paths go
    through the image-serving endpoint.
    """
    reference = (path or "").strip()
    if not reference:
        return ""
    lowered = reference.lower()
    if lowered.startswith(("data:", "http://", "https://")):
        return reference
    return f"{endpoint}?path={quote(reference, safe='')}"


def resolve_pod_path(order: Order | None, invoice: Invoice | None) -> str:
    if order is not None:
        if order.pod_image_url:
            return order.pod_image_url
        if order.pod_file_name:
            return order.pod_file_name
    if invoice is not None:
        if invoice.pod:
            return invoice.pod
        if invoice.pod_base64:
            if invoice.pod_base64.startswith("data:"):
                return invoice.pod_base64
            return f"data:image/png;base64,{invoice.pod_base64}"
    return ""


class InvoiceResolver:
    def __init__(
        self,
        aggregator: OrderAggregator,
        directory: DirectoryCache,
        pod_endpoint: str = POD_IMAGE_ENDPOINT,
    ) -> None:
        self.aggregator = aggregator
        self.orders = aggregator.orders
        self.directory = directory
        self.pod_endpoint = pod_endpoint

    def get_invoice_display(self, order_id: str, invoice_id_hint: str | None = None) -> InvoiceDisplay | None:
        order = self.aggregator.get_order(order_id)
        invoice = self._load_invoice(order_id, order, invoice_id_hint)
        details = self._invoice_lines(invoice)

        store_id = (invoice.store_id if invoice and invoice.store_id else None) or (order.store_id if order else "")
        store_name = self.resolve_store_name(order.store_name if order else "", store_id)
        pod = resolve_pod_path(order, invoice)

        if details:
            items = self._display_lines(details, order)
            amounts = sum((item.amount for item in items), ZERO)
            subtotal = invoice.subtotal if invoice is not None and invoice.subtotal > ZERO else amounts
            total = invoice.total if invoice is not None and invoice.total > ZERO else amounts
            return InvoiceDisplay(
                invoice_number=(invoice.invoice_number or invoice.id or "") if invoice else "",
                date=(invoice.created_at if invoice else None) or (order.created_at if order else None),
                subtotal=subtotal,
                total=total,
                store_id=store_id or "",
                store_name=store_name,
                pod=pod,
                pod_image_url=build_pod_image_url(pod, self.pod_endpoint),
                items=tuple(items),
            )

        if order is not None and order.items:
            return self._synthesize(order, invoice, store_name, pod)
        return None

    def resolve_store_name(self, embedded_name: str, store_id: str | None) -> str:
        """Trust a real embedded name; re-resolve blanks, "—" and raw ids."""
        if not is_placeholder_name(embedded_name):
            return embedded_name.strip()
        if not store_id:
            return PLACEHOLDER
        try:
            store = self.directory.get_store(store_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Store %s lookup failed: %s", store_id, exc)
            store = None
        if store is not None and store.name:
            return store.name
        return PLACEHOLDER

    def _load_invoice(self, order_id: str, order: Order | None, hint: str | None) -> Invoice | None:
        invoice_id = (order.invoice_id if order else None) or (str(hint).strip() if hint else None)
        if not invoice_id:
            return self.aggregator.find_invoice(order.id if order and order.id else order_id)
        try:
            return self.orders.get_invoice(invoice_id)
        except NotFoundError:
            logger.info("Invoice %s referenced by order %s does not exist", invoice_id, order_id)
            return None
        except (ApiError, ValueError) as exc:
            logger.warning("Invoice %s could not be loaded: %s", invoice_id, exc)
            return None

    def _invoice_lines(self, invoice: Invoice | None) -> list[InvoiceLine]:
        if invoice is None:
            return []
        details = list(invoice.details)
        if not details and invoice.id:
            try:
                details = self.orders.get_invoice_details(invoice.id)
            except NotFoundError:
                details = []
            except (ApiError, ValueError) as exc:
                logger.warning("Invoice details for %s unavailable: %s", invoice.id, exc)
                details = []
        positive = [line for line in details if line.quantity > 0]
        return positive or details

    def _display_lines(self, details: list[InvoiceLine], order: Order | None) -> list[InvoiceDisplayLine]:
        by_product: dict[str, OrderLine] = {}
        if order is not None:
            for line in order.items:
                if line.product_id:
                    by_product.setdefault(line.product_id, line)

        items: list[InvoiceDisplayLine] = []
        for detail in details:
            order_line = by_product.get(detail.product_id)
            qty = detail.quantity
            amount = detail.amount
            if amount == ZERO and detail.unit_price > ZERO:
                amount = qty * detail.unit_price
            price = amount / qty if qty > 0 else ZERO
            if (price == ZERO or amount == ZERO) and detail.product_id:
                if order_line is not None and order_line.price > ZERO:
                    price = order_line.price
                else:
                    price = self._latest_price(detail.product_id)
                amount = qty * price
            items.append(
                InvoiceDisplayLine(
                    qty=qty,
                    code=self._code(detail, order_line),
                    description=self._description(detail, order_line),
                    price=price,
                    amount=amount,
                )
            )
        return items

    def _synthesize(self, order: Order, invoice: Invoice | None, store_name: str, pod: str) -> InvoiceDisplay:
        lines = [line for line in order.items if line.quantity > 0] or list(order.items)
        items = [
            InvoiceDisplayLine(
                qty=line.quantity,
                code=line.sku or line.product_id or PLACEHOLDER,
                description=(
                    line.product_name if not is_placeholder_name(line.product_name) else (line.sku or PLACEHOLDER)
                ),
                price=line.price,
                amount=line.subtotal,
            )
            for line in lines
        ]
        amounts = sum((item.amount for item in items), ZERO)
        return InvoiceDisplay(
            invoice_number=(invoice.invoice_number or invoice.id or "") if invoice else "",
            date=order.created_at,
            subtotal=order.subtotal if order.subtotal > ZERO else amounts,
            total=order.total if order.total > ZERO else amounts,
            store_id=order.store_id,
            store_name=store_name,
            pod=pod,
            pod_image_url=build_pod_image_url(pod, self.pod_endpoint),
            items=tuple(items),
            synthesized=True,
        )

    def _description(self, detail: InvoiceLine, order_line: OrderLine | None) -> str:
        if not is_placeholder_name(detail.product_name):
            return detail.product_name
        if order_line is not None:
            if not is_placeholder_name(order_line.product_name):
                return order_line.product_name
            if order_line.sku:
                return order_line.sku
        if detail.product_id:
            try:
                product = self.directory.get_product(detail.product_id)
            except (ApiError, ValueError) as exc:
                logger.warning("Product %s lookup failed: %s", detail.product_id, exc)
                product = None
            if product is not None and (product.name or product.sku):
                return product.name or product.sku
        return PLACEHOLDER

    @staticmethod
    def _code(detail: InvoiceLine, order_line: OrderLine | None) -> str:
        if order_line is not None and order_line.sku:
            return order_line.sku
        return detail.sku or detail.product_id or PLACEHOLDER

    def _latest_price(self, product_id: str) -> Decimal:
        try:
            history = self.directory.latest_price(product_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Latest price for product %s unavailable: %s", product_id, exc)
            return ZERO
        return history.price if history is not None else ZERO
