from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from decimal import Decimal

from .clients.orders_client import OrdersClient
from .directory_cache import DirectoryCache
from .exceptions import ApiError, NotFoundError
from .models import Invoice, Order, OrderLine, OrderSummary, Product, is_placeholder_name
from .order_status import normalize_for_list

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _same_id(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()


class OrderAggregator:
    """Builds one consistent :class:`Order` out of the backend's scattered pieces.

    Header and details are fetched in parallel, then every line that lacks a
    usable price or name is enriched from the directory cache. Enrichment
    failures are logged and the line is kept with whatever it already had.
    """

    def __init__(self, orders: OrdersClient, directory: DirectoryCache, max_workers: int = 8) -> None:
        self.orders = orders
        self.directory = directory
        self.max_workers = max(1, max_workers)

    def get_order(self, order_id: str) -> Order | None:
        if not str(order_id or "").strip():
            return None
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            order_future = executor.submit(self.orders.get_order, order_id)
            details_future = executor.submit(self.orders.get_order_details, order_id)
            try:
                order = order_future.result()
            except NotFoundError:
                return None
            except (ApiError, ValueError) as exc:
                logger.warning("Order %s could not be loaded: %s", order_id, exc)
                return None
            if order is None:
                return None

            details = self._collect_details(details_future, order_id)
            lines = details or list(order.items)
            line_futures = [executor.submit(self._resolve_line, line) for line in lines]
            header_future = executor.submit(self._resolve_header, order)
            resolved_lines = [future.result() for future in line_futures]
            header = header_future.result()

        order = order.model_copy(update={**header, "items": resolved_lines})
        order = _apply_totals(order)
        if not order.invoice_id:
            invoice = self.find_invoice(order.id or order_id)
            if invoice is not None and invoice.id:
                order = order.model_copy(update={"invoice_id": invoice.id})
        return order

    def list_orders(self) -> list[OrderSummary]:
        try:
            orders = self.orders.list_orders()
        except (ApiError, ValueError) as exc:
            logger.warning("Order list could not be loaded: %s", exc)
            return []
        invoices = self._invoices_by_order()
        stores = self._store_names()

        summaries: list[OrderSummary] = []
        for order in orders:
            if not order.id:
                continue
            invoice = invoices.get(order.id.lower())
            subtotal, tax, total = order.subtotal, order.tax, order.total
            if invoice is not None:
                if total <= ZERO and invoice.total > ZERO:
                    total = invoice.total
                if subtotal <= ZERO and invoice.subtotal > ZERO:
                    subtotal = invoice.subtotal
                if tax <= ZERO and invoice.tax > ZERO:
                    tax = invoice.tax
            store_name = order.store_name
            if is_placeholder_name(store_name):
                store_name = stores.get(order.store_id, store_name)
            summaries.append(
                OrderSummary(
                    id=order.id,
                    store_id=order.store_id,
                    store_name=store_name,
                    salesperson_id=order.salesperson_id,
                    created_at=order.created_at,
                    status=normalize_for_list(order.status),
                    subtotal=subtotal,
                    tax=tax,
                    total=total,
                    invoice_id=order.invoice_id or (invoice.id if invoice else None),
                )
            )
        return summaries

    def find_invoice(self, order_id: str) -> Invoice | None:
        """Scan the invoice list for the invoice that references ``order_id``."""
        try:
            invoices = self.orders.list_invoices()
        except (ApiError, ValueError) as exc:
            logger.warning("Invoice lookup for order %s failed: %s", order_id, exc)
            return None
        for invoice in invoices:
            if _same_id(invoice.order_id, order_id):
                return invoice
        return None

    def _collect_details(self, future: Future, order_id: str) -> list[OrderLine]:
        try:
            return future.result()
        except NotFoundError:
            return []
        except (ApiError, ValueError) as exc:
            logger.warning("Order details for %s unavailable, using embedded lines: %s", order_id, exc)
            return []

    def _invoices_by_order(self) -> dict[str, Invoice]:
        try:
            invoices = self.orders.list_invoices()
        except (ApiError, ValueError) as exc:
            logger.warning("Invoice list unavailable, order totals left as reported: %s", exc)
            return {}
        return {invoice.order_id.lower(): invoice for invoice in invoices if invoice.order_id}

    def _store_names(self) -> dict[str, str]:
        try:
            stores = self.directory.list_stores()
        except (ApiError, ValueError) as exc:
            logger.warning("Store list unavailable: %s", exc)
            return {}
        return {store.id: store.name for store in stores if store.id and store.name}

    def _resolve_header(self, order: Order) -> dict[str, str]:
        updates: dict[str, str] = {}
        if order.store_id and (is_placeholder_name(order.store_name) or not order.store_address):
            try:
                store = self.directory.get_store(order.store_id)
            except (ApiError, ValueError) as exc:
                logger.warning("Store %s lookup failed: %s", order.store_id, exc)
                store = None
            if store is not None:
                if is_placeholder_name(order.store_name) and store.name:
                    updates["store_name"] = store.name
                if not order.store_address and store.address:
                    updates["store_address"] = store.address
        if order.salesperson_id and not order.salesperson_name:
            try:
                user = self.directory.get_user(order.salesperson_id)
            except (ApiError, ValueError) as exc:
                logger.warning("User %s lookup failed: %s", order.salesperson_id, exc)
                user = None
            if user is not None and user.full_name:
                updates["salesperson_name"] = user.full_name
        return updates

    def _resolve_line(self, line: OrderLine) -> OrderLine:
        price = line.price
        if price <= ZERO and line.reported_subtotal and line.reported_subtotal > ZERO and line.quantity > 0:
            price = line.reported_subtotal / line.quantity
        needs_name = is_placeholder_name(line.product_name)
        if price > ZERO and not needs_name:
            return line if price == line.price else line.model_copy(update={"price": price})

        if price <= ZERO:
            price = self._latest_price(line.product_id)
        name, sku = line.product_name, line.sku
        if price <= ZERO or needs_name:
            product = self._product(line.product_id)
            if product is not None:
                if price <= ZERO and product.current_price > ZERO:
                    price = product.current_price
                if needs_name and product.name:
                    name = product.name
                if not sku and product.sku:
                    sku = product.sku
        return line.model_copy(update={"price": max(price, ZERO), "product_name": name, "sku": sku})

    def _latest_price(self, product_id: str) -> Decimal:
        if not product_id:
            return ZERO
        try:
            history = self.directory.latest_price(product_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Latest price for product %s unavailable: %s", product_id, exc)
            return ZERO
        return history.price if history is not None else ZERO

    def _product(self, product_id: str) -> Product | None:
        if not product_id:
            return None
        try:
            return self.directory.get_product(product_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Product %s lookup failed: %s", product_id, exc)
            return None


def _apply_totals(order: Order) -> Order:
    computed = sum((line.subtotal for line in order.items), ZERO)
    subtotal = order.subtotal
    if subtotal <= ZERO and computed > ZERO:
        subtotal = computed
    total = order.total
    if total <= ZERO:
        total = subtotal + order.tax
    if subtotal == order.subtotal and total == order.total:
        return order
    return order.model_copy(update={"subtotal": subtotal, "total": total})
