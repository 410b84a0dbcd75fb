from __future__ import annotations

from enum import Enum
from typing import Any

from .validation import ClientValidationError, ValidationIssue


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    INVOICED = "invoiced"
    DELIVERED = "delivered"


class OrderEvent(str, Enum):
    POD_CONFIRMED = "pod_confirmed"


class OrderStateError(ClientValidationError):
    pass


_TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.PENDING, OrderEvent.POD_CONFIRMED): OrderStatus.INVOICED,
}


def parse_status(value: Any) -> OrderStatus:
    """Map a backend status string to the enum; blank or unknown is pending."""
    if isinstance(value, OrderStatus):
        return value
    text = str(value or "").strip().lower()
    try:
        return OrderStatus(text)
    except ValueError:
        return OrderStatus.PENDING


def normalize_for_list(status: OrderStatus | str | None) -> OrderStatus:
    parsed = parse_status(status)
    return OrderStatus.PENDING if parsed is OrderStatus.PENDING else OrderStatus.COMPLETED


def is_mutable(status: OrderStatus | str | None) -> bool:
    return parse_status(status) is OrderStatus.PENDING


def ensure_mutable(status: OrderStatus | str | None, action: str) -> None:
    parsed = parse_status(status)
    if parsed is not OrderStatus.PENDING:
        raise OrderStateError(
            [ValidationIssue(row_index=None, field="status", reason=f"cannot {action} a {parsed.value} order")]
        )


def transition(current: OrderStatus | str | None, event: OrderEvent) -> OrderStatus:
    parsed = parse_status(current)
    target = _TRANSITIONS.get((parsed, event))
    if target is None:
        raise OrderStateError(
            [ValidationIssue(row_index=None, field="status", reason=f"{event.value} not allowed from {parsed.value}")]
        )
    return target
