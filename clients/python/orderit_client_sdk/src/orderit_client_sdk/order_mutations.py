from __future__ import annotations

import logging
import secrets
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from pydantic import Field

from .clients.orders_client import OrdersClient
from .exceptions import ApiError, ConflictError, IncompleteWriteError, NotFoundError
from .models import Money, OptionalId, Order, OrderLine, WireModel
from .order_aggregator import OrderAggregator
from .order_status import OrderEvent, OrderStatus, ensure_mutable, transition
from .pod_validation import validate_pod_upload
from .validation import ClientValidationError, ValidationIssue

logger = logging.getLogger(__name__)

TAX_RATE = Decimal("0.21")
CENTS = Decimal("0.01")
ZERO = Decimal("0")


class OrderUpdate(WireModel):
    items: list[OrderLine] = Field(default_factory=list)
    store_id: OptionalId = None
    notes: str | None = None
    tax: Money | None = None


def _sequence(now_ms: int | None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{timestamp}-{secrets.randbelow(1000):03d}"


def generate_po_number(now_ms: int | None = None) -> str:
    return f"PO-{_sequence(now_ms)}"


def generate_invoice_number(now_ms: int | None = None) -> str:
    return f"INV-{_sequence(now_ms)}"


def compute_tax(subtotal: Decimal) -> Decimal:
    return (subtotal * TAX_RATE).quantize(CENTS, rounding=ROUND_HALF_UP)


def _number(value: Decimal) -> float:
    return float(value)


def _coerce_lines(lines: Iterable[OrderLine | Mapping[str, Any]]) -> list[OrderLine]:
    coerced: list[OrderLine] = []
    for line in lines:
        if isinstance(line, OrderLine):
            coerced.append(line)
        else:
            coerced.append(OrderLine.model_validate(dict(line)))
    return coerced


def _line_body(parent_key: str, parent_id: str, line: OrderLine, detail_id: str | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        parent_key: parent_id,
        "productId": line.product_id,
        "quantity": line.quantity,
        "unitPrice": _number(line.price),
        "subtotal": _number(line.subtotal),
    }
    if detail_id:
        body["id"] = detail_id
    return body


class OrderMutationService:
    """Writes orders, invoices and PODs back to the backend.

    Nothing is cached or patched locally: callers re-read through the
    :class:`OrderAggregator` after a successful write. Mutations are never
    retried. Status rules are checked before the first write.
    """

    def __init__(self, orders: OrdersClient, aggregator: OrderAggregator) -> None:
        self.orders = orders
        self.aggregator = aggregator

    def create_order(
        self,
        store_id: str,
        seller_id: str | None,
        lines: Iterable[OrderLine | Mapping[str, Any]],
        notes: str | None = None,
    ) -> Order:
        if not (store_id or "").strip():
            raise ClientValidationError([ValidationIssue(row_index=None, field="store_id", reason="is required")])
        ordered = [line for line in _coerce_lines(lines) if line.quantity > 0 and line.product_id]
        if not ordered:
            raise ClientValidationError(
                [ValidationIssue(row_index=None, field="lines", reason="at least one product with quantity > 0")]
            )

        subtotal = sum((line.subtotal for line in ordered), ZERO)
        tax = compute_tax(subtotal)
        total = subtotal + tax
        po_number = generate_po_number()

        header = {
            "storeId": store_id,
            "salespersonId": seller_id,
            "status": OrderStatus.PENDING.value,
            "poNumber": po_number,
            "subtotal": _number(subtotal),
            "tax": _number(tax),
            "total": _number(total),
            "notes": notes or "",
        }
        order_id = self.orders.create_order(header)
        if order_id is None:
            logger.warning("Backend returned no id for order %s, no lines written", po_number)
            raise IncompleteWriteError(
                code="ORDER_ID_MISSING",
                message="Backend did not return an order id",
                details={"po_number": po_number, "saved_lines": []},
                status_code=0,
            )

        saved: list[str] = []
        for line in ordered:
            try:
                self.orders.create_order_detail(_line_body("orderId", order_id, line))
            except ApiError as exc:
                logger.warning("Order %s line %s was not saved: %s", order_id, line.product_id, exc)
                raise IncompleteWriteError(
                    code="ORDER_LINES_INCOMPLETE",
                    message=f"Order {order_id} was created but line {line.product_id} was not saved",
                    details={"order_id": order_id, "saved_lines": saved, "failed_line": line.product_id},
                    trace_id=exc.trace_id,
                    status_code=exc.status_code,
                ) from exc
            saved.append(line.product_id)

        invoice_id = self._create_draft_invoice(order_id, store_id, ordered, subtotal, tax, total)
        return Order(
            id=order_id,
            store_id=store_id,
            salesperson_id=seller_id,
            status=OrderStatus.PENDING,
            items=ordered,
            subtotal=subtotal,
            tax=tax,
            total=total,
            notes=notes or "",
            invoice_id=invoice_id,
        )

    def update_order(
        self,
        order_id: str,
        payload: OrderUpdate | Mapping[str, Any],
        invoice_id_hint: str | None = None,
        expected_version: int | None = None,
    ) -> bool:
        update = payload if isinstance(payload, OrderUpdate) else OrderUpdate.model_validate(dict(payload))
        current = self.aggregator.get_order(order_id)
        if current is None:
            logger.warning("Order %s not found, nothing updated", order_id)
            return False
        ensure_mutable(current.status, "update")
        if expected_version is not None and current.version is not None and current.version != expected_version:
            raise ConflictError(
                code="VERSION_CONFLICT",
                message="Order was modified by someone else",
                details={"expected_version": expected_version, "current_version": current.version},
                trace_id=None,
                status_code=409,
            )

        lines = [line for line in update.items if line.product_id]
        subtotal = sum((line.subtotal for line in lines), ZERO)
        tax = update.tax if update.tax is not None else ZERO
        total = subtotal + tax
        notes = update.notes if update.notes is not None else current.notes
        store_id = update.store_id or current.store_id

        try:
            self.orders.update_order(
                order_id,
                {
                    "orderId": order_id,
                    "storeId": store_id,
                    "salespersonId": current.salesperson_id,
                    "status": current.status.value,
                    "subtotal": _number(subtotal),
                    "tax": _number(tax),
                    "total": _number(total),
                    "notes": notes,
                },
                if_match=expected_version,
            )
            self._sync_lines(
                "orderId",
                order_id,
                lines,
                self.orders.get_order_details,
                self.orders.update_order_detail,
                self.orders.create_order_detail,
            )
            invoice_id = current.invoice_id or (str(invoice_id_hint).strip() if invoice_id_hint else None)
            if not invoice_id:
                invoice = self.aggregator.find_invoice(order_id)
                invoice_id = invoice.id if invoice is not None else None
            if invoice_id:
                self.orders.update_invoice(
                    invoice_id,
                    {
                        "id": invoice_id,
                        "orderId": order_id,
                        "storeId": store_id,
                        "subtotal": _number(subtotal),
                        "tax": _number(tax),
                        "total": _number(total),
                    },
                )
                self._sync_lines(
                    "invoiceId",
                    invoice_id,
                    lines,
                    self.orders.get_invoice_details,
                    self.orders.update_invoice_detail,
                    self.orders.create_invoice_detail,
                )
        except ConflictError:
            raise
        except ApiError as exc:
            logger.warning("Order %s update failed: %s", order_id, exc)
            return False
        return True

    def upload_pod(
        self,
        invoice_id: str,
        file_name_or_data_url: str,
        *,
        order_id: str | None = None,
        content_type: str | None = None,
        size_bytes: int | None = None,
        file_name: str | None = None,
    ) -> bool:
        upload = validate_pod_upload(file_name_or_data_url, content_type, size_bytes, file_name=file_name)
        order_id = order_id or self._order_for_invoice(invoice_id)
        if not order_id:
            logger.warning("Invoice %s has no order, POD not uploaded", invoice_id)
            return False
        order = self.aggregator.get_order(order_id)
        if order is None:
            logger.warning("Order %s not found, POD not uploaded", order_id)
            return False
        target = transition(order.status, OrderEvent.POD_CONFIRMED)

        try:
            self.orders.upload_invoice_pod(invoice_id, upload.pod_path, upload.base64)
        except ApiError as exc:
            logger.warning("POD upload for invoice %s failed: %s", invoice_id, exc)
            return False
        try:
            self.orders.update_order_status(order_id, is_invoiced=True)
        except ApiError as exc:
            logger.warning("POD stored but order %s status update failed: %s", order_id, exc)
            return False
        logger.info("Order %s moved to %s after POD upload", order_id, target.value)
        return True

    def delete_order(self, order_id: str) -> bool:
        current = self.aggregator.get_order(order_id)
        if current is None:
            return False
        ensure_mutable(current.status, "delete")
        try:
            self.orders.delete_order(order_id)
        except ApiError as exc:
            logger.warning("Order %s delete failed: %s", order_id, exc)
            return False
        return True

    def validate_pod(self, pod_id: str, validated_by: str) -> bool:
        return self._set_pod_validation(pod_id, True, validated_by)

    def invalidate_pod(self, pod_id: str) -> bool:
        return self._set_pod_validation(pod_id, False, None)

    def _set_pod_validation(self, pod_id: str, is_validated: bool, validated_by: str | None) -> bool:
        try:
            self.orders.set_pod_validation(pod_id, is_validated, validated_by)
        except ApiError as exc:
            logger.warning("POD %s validation change failed: %s", pod_id, exc)
            return False
        return True

    def _order_for_invoice(self, invoice_id: str) -> str | None:
        try:
            invoice = self.orders.get_invoice(invoice_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Invoice %s could not be loaded: %s", invoice_id, exc)
            return None
        return invoice.order_id if invoice is not None else None

    def _create_draft_invoice(
        self,
        order_id: str,
        store_id: str,
        lines: list[OrderLine],
        subtotal: Decimal,
        tax: Decimal,
        total: Decimal,
    ) -> str | None:
        invoice_number = generate_invoice_number()
        try:
            invoice_id = self.orders.create_invoice(
                {
                    "orderId": order_id,
                    "storeId": store_id,
                    "invoiceNumber": invoice_number,
                    "status": "draft",
                    "subtotal": _number(subtotal),
                    "tax": _number(tax),
                    "total": _number(total),
                }
            )
        except ApiError as exc:
            logger.warning("Draft invoice for order %s was not created: %s", order_id, exc)
            return None
        if invoice_id is None:
            logger.warning("Backend returned no invoice id for order %s", order_id)
            return None
        for line in lines:
            try:
                self.orders.create_invoice_detail(_line_body("invoiceId", invoice_id, line))
            except ApiError as exc:
                logger.warning("Invoice %s line %s was not saved: %s", invoice_id, line.product_id, exc)
        return invoice_id

    def _sync_lines(self, parent_key, parent_id, lines, fetch, update, create) -> None:
        """Upsert one detail per product and zero out products that were removed."""
        try:
            current = fetch(parent_id)
        except NotFoundError:
            current = []
        existing = {detail.product_id: detail for detail in current if detail.product_id}
        wanted = {line.product_id for line in lines}
        for line in lines:
            detail = existing.get(line.product_id)
            if detail is not None and detail.id:
                update(detail.id, _line_body(parent_key, parent_id, line, detail.id))
            else:
                create(_line_body(parent_key, parent_id, line))
        for product_id, detail in existing.items():
            if product_id in wanted or not detail.id or detail.quantity <= 0:
                continue
            cleared = OrderLine(product_id=product_id, quantity=0, price=ZERO)
            update(detail.id, _line_body(parent_key, parent_id, cleared, detail.id))
