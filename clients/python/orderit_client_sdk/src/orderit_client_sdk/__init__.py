from .clients import DirectoryClient, OrdersClient
from .config import ClientConfig, ConfigError, load_config
from .directory_cache import DirectoryCache
from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    IncompleteWriteError,
    NotFoundError,
    PermissionError,
    PlanogramUnavailableError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .integrity import IntegrityIssue, IssueType, Severity, check_integrity
from .invoice_resolver import InvoiceResolver, build_pod_image_url, resolve_pod_path
from .models import (
    Distribution,
    Invoice,
    InvoiceDisplay,
    InvoiceDisplayLine,
    InvoiceLine,
    Order,
    OrderLine,
    OrderSummary,
    Planogram,
    Pod,
    PriceHistory,
    Product,
    Store,
    User,
    looks_like_identifier,
)
from .order_aggregator import OrderAggregator
from .order_mutations import (
    TAX_RATE,
    OrderMutationService,
    OrderUpdate,
    generate_invoice_number,
    generate_po_number,
)
from .order_status import OrderEvent, OrderStateError, OrderStatus, ensure_mutable, normalize_for_list, transition
from .planogram_grid import GridCell, GridConflict, PlanogramGrid, PlanogramGridBuilder, build_grid
from .pod_validation import MAX_POD_BYTES, PodUpload, PodValidationError, validate_pod_upload
from .session import ApiSession
from .tracing import TraceContext
from .validation import ClientValidationError, ValidationIssue

__all__ = [
    "ApiError",
    "ApiSession",
    "AuthError",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "DirectoryCache",
    "DirectoryClient",
    "Distribution",
    "GridCell",
    "GridConflict",
    "HttpClient",
    "IncompleteWriteError",
    "IntegrityIssue",
    "Invoice",
    "InvoiceDisplay",
    "InvoiceDisplayLine",
    "InvoiceLine",
    "InvoiceResolver",
    "IssueType",
    "MAX_POD_BYTES",
    "NotFoundError",
    "Order",
    "OrderAggregator",
    "OrderEvent",
    "OrderLine",
    "OrderMutationService",
    "OrderStateError",
    "OrderStatus",
    "OrderSummary",
    "OrderUpdate",
    "OrdersClient",
    "PermissionError",
    "Planogram",
    "PlanogramGrid",
    "PlanogramGridBuilder",
    "PlanogramUnavailableError",
    "Pod",
    "PodUpload",
    "PodValidationError",
    "PriceHistory",
    "Product",
    "RateLimitError",
    "ServerError",
    "Severity",
    "Store",
    "TAX_RATE",
    "TraceContext",
    "TransportError",
    "User",
    "ValidationError",
    "ValidationIssue",
    "build_grid",
    "build_pod_image_url",
    "check_integrity",
    "ensure_mutable",
    "generate_invoice_number",
    "generate_po_number",
    "load_config",
    "looks_like_identifier",
    "normalize_for_list",
    "resolve_pod_path",
    "transition",
    "validate_pod_upload",
]
