from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models import Invoice, InvoiceLine, Order, OrderLine, Pod, decode_list, decode_model, extract_id
from .base import BaseClient, segment


@dataclass
class OrdersClient(BaseClient):
    """Orders, order details, invoices, invoice details and PODs."""

    def list_orders(self) -> list[Order]:
        return decode_list(self._request("GET", "/orders/orders", operation="orders.list"), Order)

    def get_order(self, order_id: str) -> Order | None:
        data = self._request("GET", f"/orders/orders/{segment(order_id)}", operation="orders.get")
        return decode_model(data, Order)

    def create_order(self, body: Mapping[str, Any]) -> str | None:
        return extract_id(self._request("POST", "/orders/orders", json_body=dict(body), operation="orders.create"))

    def update_order(self, order_id: str, body: Mapping[str, Any], if_match: int | str | None = None) -> None:
        headers = {"If-Match": str(if_match)} if if_match is not None else None
        self._request(
            "PUT",
            f"/orders/order/{segment(order_id)}",
            json_body=dict(body),
            headers=headers,
            operation="orders.update",
        )

    def update_order_status(self, order_id: str, is_invoiced: bool = True) -> None:
        self._request(
            "PUT",
            f"/orders/order/{segment(order_id)}/status",
            json_body={"orderId": str(order_id), "isInvoiced": is_invoiced},
            operation="orders.status",
        )

    def delete_order(self, order_id: str) -> None:
        self._request("DELETE", f"/orders/orders/{segment(order_id)}", operation="orders.delete")

    def get_order_details(self, order_id: str) -> list[OrderLine]:
        data = self._request(
            "GET",
            f"/orderdetails/orderdetails/order/{segment(order_id)}",
            operation="orderdetails.by_order",
        )
        return decode_list(data, OrderLine)

    def create_order_detail(self, body: Mapping[str, Any]) -> str | None:
        data = self._request(
            "POST", "/orderdetails/orderdetails", json_body=dict(body), operation="orderdetails.create"
        )
        return extract_id(data)

    def update_order_detail(self, detail_id: str, body: Mapping[str, Any]) -> None:
        self._request(
            "PUT",
            f"/orderdetails/orderdetails/{segment(detail_id)}",
            json_body=dict(body),
            operation="orderdetails.update",
        )

    def list_invoices(self) -> list[Invoice]:
        return decode_list(self._request("GET", "/invoice/invoices", operation="invoices.list"), Invoice)

    def get_invoice(self, invoice_id: str) -> Invoice | None:
        data = self._request("GET", f"/invoice/invoices/{segment(invoice_id)}", operation="invoices.get")
        return decode_model(data, Invoice)

    def create_invoice(self, body: Mapping[str, Any]) -> str | None:
        data = self._request("POST", "/invoice/invoices", json_body=dict(body), operation="invoices.create")
        return extract_id(data)

    def update_invoice(self, invoice_id: str, body: Mapping[str, Any]) -> None:
        self._request(
            "PUT",
            f"/invoice/invoices/{segment(invoice_id)}",
            json_body=dict(body),
            operation="invoices.update",
        )

    def upload_invoice_pod(self, invoice_id: str, pod_path: str, pod_base64: str | None = None) -> None:
        body: dict[str, Any] = {"id": str(invoice_id), "pod": pod_path}
        if pod_base64:
            body["podBase64"] = pod_base64
        self._request(
            "PATCH",
            f"/invoice/invoices/{segment(invoice_id)}/pod",
            json_body=body,
            operation="invoices.pod",
        )

    def get_invoice_details(self, invoice_id: str) -> list[InvoiceLine]:
        data = self._request(
            "GET",
            f"/invoicedetails/invoicedetails/invoice/{segment(invoice_id)}",
            operation="invoicedetails.by_invoice",
        )
        return decode_list(data, InvoiceLine)

    def create_invoice_detail(self, body: Mapping[str, Any]) -> str | None:
        data = self._request(
            "POST", "/invoicedetails/invoicedetails", json_body=dict(body), operation="invoicedetails.create"
        )
        return extract_id(data)

    def update_invoice_detail(self, detail_id: str, body: Mapping[str, Any]) -> None:
        self._request(
            "PUT",
            f"/invoicedetails/invoicedetails/{segment(detail_id)}",
            json_body=dict(body),
            operation="invoicedetails.update",
        )

    def list_pods(self) -> list[Pod]:
        return decode_list(self._request("GET", "/pods/pods", operation="pods.list"), Pod)

    def set_pod_validation(self, pod_id: str, is_validated: bool, validated_by: str | None = None) -> None:
        body: dict[str, Any] = {"isValidated": is_validated}
        if validated_by:
            body["validatedBy"] = validated_by
        self._request(
            "PUT",
            f"/pods/pods/{segment(pod_id)}/validate",
            json_body=body,
            operation="pods.validate",
        )
