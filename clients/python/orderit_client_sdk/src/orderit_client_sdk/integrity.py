from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .models import Invoice, Order, Pod
from .order_status import OrderStatus


class IssueType(str, Enum):
    ORDER_WITHOUT_INVOICE = "order_without_invoice"
    INVOICE_WITHOUT_POD = "invoice_without_pod"
    ORPHAN_POD = "orphan_pod"
    DATA_MISMATCH = "data_mismatch"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


@dataclass(frozen=True)
class IntegrityIssue:
    type: IssueType
    severity: Severity
    description: str
    order_id: str | None = None
    invoice_id: str | None = None
    pod_id: str | None = None


def _has_pod(invoice: Invoice) -> bool:
    return bool(invoice.pod_id or invoice.pod or invoice.pod_base64)


def check_integrity(
    orders: Iterable[Order],
    invoices: Iterable[Invoice],
    pods: Iterable[Pod],
) -> list[IntegrityIssue]:
    """Cross-check the order -> invoice -> POD chain for broken links."""
    orders = list(orders)
    invoices = list(invoices)
    pods = list(pods)
    invoiced_orders = {invoice.order_id for invoice in invoices if invoice.order_id}
    pods_by_id = {pod.id: pod for pod in pods if pod.id}
    issues: list[IntegrityIssue] = []

    for order in orders:
        if order.status is OrderStatus.DELIVERED and order.id not in invoiced_orders:
            issues.append(
                IntegrityIssue(
                    type=IssueType.ORDER_WITHOUT_INVOICE,
                    severity=Severity.HIGH,
                    description=f"Order {order.id} is delivered but has no invoice",
                    order_id=order.id,
                )
            )

    for invoice in invoices:
        if invoice.status.lower() == "paid" and not _has_pod(invoice):
            issues.append(
                IntegrityIssue(
                    type=IssueType.INVOICE_WITHOUT_POD,
                    severity=Severity.HIGH,
                    description=f"Invoice {invoice.invoice_number or invoice.id} is paid but has no POD",
                    invoice_id=invoice.id,
                )
            )

    for pod in pods:
        if not pod.invoice_id and not pod.order_id:
            issues.append(
                IntegrityIssue(
                    type=IssueType.ORPHAN_POD,
                    severity=Severity.MEDIUM,
                    description=f"POD {pod.id} is not linked to any invoice or order",
                    pod_id=pod.id,
                )
            )

    for invoice in invoices:
        pod = pods_by_id.get(invoice.pod_id) if invoice.pod_id else None
        if pod is not None and pod.invoice_id != invoice.id:
            issues.append(
                IntegrityIssue(
                    type=IssueType.DATA_MISMATCH,
                    severity=Severity.MEDIUM,
                    description=(
                        f"Invoice {invoice.invoice_number or invoice.id} points at POD {pod.id}, "
                        f"which belongs to invoice {pod.invoice_id or 'none'}"
                    ),
                    invoice_id=invoice.id,
                    pod_id=pod.id,
                )
            )
    return issues
