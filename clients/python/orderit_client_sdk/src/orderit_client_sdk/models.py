from __future__ import annotations

import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Iterable, TypeVar

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .order_status import OrderStatus, parse_status

logger = logging.getLogger(__name__)

GRID_SIZE = 10
LIST_ENVELOPE_KEYS = ("data", "items", "value")

M = TypeVar("M", bound=BaseModel)


def _money(value: Any) -> Any:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def _optional_id(value: Any) -> Any:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def _quantity(value: Any) -> Any:
    if value is None or value == "":
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


Money = Annotated[Decimal, BeforeValidator(_money)]
OptionalId = Annotated[str | None, BeforeValidator(_optional_id)]
Text = Annotated[str, BeforeValidator(_text)]
Quantity = Annotated[int, BeforeValidator(_quantity), Field(ge=0)]


def to_decimal(value: Any) -> Decimal:
    try:
        return Decimal(str(_money(value)))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def clamp_position(value: Any) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return 0
    return max(0, min(GRID_SIZE - 1, number))


class WireModel(BaseModel):
    """Backend payloads are camelCase; python attributes are snake_case."""

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)


class OrderLine(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "orderDetailId", "detailId"))
    order_id: OptionalId = None
    product_id: Text = ""
    product_name: Text = Field(default="", validation_alias=AliasChoices("productName", "name", "description"))
    sku: Text = ""
    quantity: Quantity = 0
    price: Money = Field(default=Decimal("0"), validation_alias=AliasChoices("unitPrice", "price"))
    reported_subtotal: Money | None = Field(
        default=None,
        validation_alias=AliasChoices("subtotal", "amount"),
        exclude=True,
    )
    row: int | None = None
    col: int | None = None

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.price


class Order(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "orderId"))
    store_id: Text = ""
    store_name: Text = ""
    store_address: Text = ""
    salesperson_id: OptionalId = Field(
        default=None,
        validation_alias=AliasChoices("salespersonId", "sellerId", "userId"),
    )
    salesperson_name: Text = ""
    created_at: datetime | None = Field(default=None, validation_alias=AliasChoices("createdAt", "orderDate", "date"))
    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderLine] = Field(default_factory=list, validation_alias=AliasChoices("items", "details", "orderDetails"))
    subtotal: Money = Decimal("0")
    tax: Money = Decimal("0")
    total: Money = Decimal("0")
    notes: Text = Field(default="", validation_alias=AliasChoices("notes", "comments"))
    pod_image_url: Text = ""
    pod_file_name: Text = ""
    invoice_id: OptionalId = None
    planogram_id: OptionalId = None
    version: int | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> OrderStatus:
        return parse_status(value)

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self.items)


class OrderSummary(WireModel):
    id: str
    store_id: str = ""
    store_name: str = ""
    salesperson_id: str | None = None
    created_at: datetime | None = None
    status: OrderStatus = OrderStatus.PENDING
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    invoice_id: str | None = None


class InvoiceLine(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "invoiceDetailId", "detailId"))
    invoice_id: OptionalId = None
    product_id: Text = ""
    product_name: Text = Field(default="", validation_alias=AliasChoices("productName", "description", "name"))
    sku: Text = ""
    quantity: Quantity = 0
    unit_price: Money = Field(default=Decimal("0"), validation_alias=AliasChoices("unitPrice", "price"))
    amount: Money = Field(default=Decimal("0"), validation_alias=AliasChoices("subtotal", "amount", "total"))


class Invoice(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "invoiceId"))
    order_id: OptionalId = None
    invoice_number: Text = Field(default="", validation_alias=AliasChoices("invoiceNumber", "number"))
    store_id: OptionalId = None
    created_at: datetime | None = Field(default=None, validation_alias=AliasChoices("createdAt", "invoiceDate", "date"))
    status: Text = ""
    subtotal: Money = Decimal("0")
    tax: Money = Decimal("0")
    total: Money = Decimal("0")
    pod: Text = Field(default="", validation_alias=AliasChoices("pod", "podUrl", "podImageUrl", "podPath"))
    pod_base64: Text = ""
    pod_id: OptionalId = None
    details: list[InvoiceLine] = Field(
        default_factory=list,
        validation_alias=AliasChoices("details", "invoiceDetails", "items"),
    )


class Product(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "productId"))
    sku: Text = ""
    name: Text = Field(default="", validation_alias=AliasChoices("name", "productName"))
    category: Text = ""
    current_price: Money = Field(default=Decimal("0"), validation_alias=AliasChoices("currentPrice", "price"))
    is_active: bool = True


class Store(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "storeId"))
    name: Text = Field(default="", validation_alias=AliasChoices("name", "storeName"))
    address: Text = ""
    city_id: OptionalId = None
    is_active: bool = True


class User(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "userId"))
    first_name: Text = ""
    last_name: Text = ""
    email: Text = ""
    role: Text = ""
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class PriceHistory(WireModel):
    id: OptionalId = None
    product_id: OptionalId = None
    price: Money = Decimal("0")
    start_date: date | datetime | None = None
    end_date: date | datetime | None = None


class Planogram(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "planogramId"))
    name: Text = ""
    description: Text = ""
    version: int | None = None
    is_active: bool = False


class Distribution(WireModel):
    id: OptionalId = None
    planogram_id: OptionalId = None
    product_id: OptionalId = None
    x_position: int = Field(default=0, validation_alias=AliasChoices("xPosition", "Xposition", "row"))
    y_position: int = Field(default=0, validation_alias=AliasChoices("yPosition", "Yposition", "col"))

    @field_validator("x_position", "y_position", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return clamp_position(value)

    @property
    def row(self) -> int:
        return self.x_position

    @property
    def col(self) -> int:
        return self.y_position


class Pod(WireModel):
    id: OptionalId = Field(default=None, validation_alias=AliasChoices("id", "podId"))
    order_id: OptionalId = None
    invoice_id: OptionalId = None
    image_ref: Text = Field(default="", validation_alias=AliasChoices("imageRef", "imageUrl", "image"))
    is_validated: bool = False
    uploaded_by: OptionalId = None
    uploaded_at: datetime | None = None
    validated_at: datetime | None = None
    validated_by: OptionalId = None


class InvoiceDisplayLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    qty: int
    code: str
    description: str
    price: Decimal
    amount: Decimal


class InvoiceDisplay(BaseModel):
    model_config = ConfigDict(frozen=True)

    invoice_number: str
    date: datetime | None = None
    subtotal: Decimal
    total: Decimal
    store_id: str = ""
    store_name: str = ""
    pod: str = ""
    pod_image_url: str = ""
    items: tuple[InvoiceDisplayLine, ...] = ()
    synthesized: bool = False


def unwrap_list(payload: Any) -> list[Any]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in LIST_ENVELOPE_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise ValueError(f"Expected a JSON array or list envelope, got {type(payload).__name__}")


def unwrap_object(payload: Any) -> dict[str, Any] | None:
    if payload is None or payload == "":
        return None
    if isinstance(payload, dict):
        for key in ("data", "value"):
            inner = payload.get(key)
            if isinstance(inner, dict):
                return inner
        return payload
    raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")


def decode_model(payload: Any, model: type[M]) -> M | None:
    data = unwrap_object(payload)
    if data is None:
        return None
    try:
        return model.model_validate(data)
    except ValueError:
        logger.warning("Rejected %s payload with unexpected shape", model.__name__)
        raise


def decode_list(payload: Any, model: type[M]) -> list[M]:
    rows: Iterable[Any] = unwrap_list(payload)
    decoded: list[M] = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValueError(f"Expected {model.__name__} rows to be JSON objects")
        try:
            decoded.append(model.model_validate(row))
        except ValueError:
            logger.warning("Rejected %s row with unexpected shape", model.__name__)
            raise
    return decoded


def extract_id(payload: Any) -> str | None:
    """Pull the new entity id out of a create response.

    The backend answers either a bare id or an object that carries it,
    possibly nested under ``data``/``value``.
    """
    if payload is None or isinstance(payload, bool):
        return None
    if isinstance(payload, (int, str)):
        return _optional_id(payload)
    if isinstance(payload, dict):
        for key in ("id", "orderId", "invoiceId", "orderDetailId", "invoiceDetailId"):
            if payload.get(key) is not None:
                return _optional_id(payload[key])
        for key in ("data", "value"):
            if key in payload:
                return extract_id(payload[key])
    return None


_UUID_LIKE_RE = re.compile(r"^[0-9a-f-]{36}$", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^\d+$")


def looks_like_identifier(value: str | None) -> bool:
    """True for UUID-shaped or purely numeric text, which is never a display name."""
    text = (value or "").strip()
    return bool(_UUID_LIKE_RE.match(text) or _NUMERIC_RE.match(text))


def is_placeholder_name(value: str | None) -> bool:
    text = (value or "").strip()
    return not text or text == "—" or looks_like_identifier(text)
