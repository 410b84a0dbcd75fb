from __future__ import annotations

from dataclasses import dataclass, field

from .clients.directory_client import DirectoryClient
from .clients.orders_client import OrdersClient
from .config import ClientConfig
from .directory_cache import DirectoryCache
from .http_client import HttpClient
from .invoice_resolver import InvoiceResolver
from .order_aggregator import OrderAggregator
from .order_mutations import OrderMutationService
from .planogram_grid import PlanogramGridBuilder
from .tracing import TraceContext


@dataclass
class ApiSession:
    """Wires one HTTP client, one directory cache and the services on top.

    The bearer token is supplied by the caller; obtaining it is out of scope.
    """

    config: ClientConfig
    token: str | None = None
    trace: TraceContext | None = None
    http: HttpClient | None = None
    _directory: DirectoryCache | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.trace = self.trace or TraceContext()
        self.http = self.http or HttpClient(config=self.config, trace=self.trace)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(http=self.http, access_token=self.token)

    def directory_client(self) -> DirectoryClient:
        return DirectoryClient(http=self.http, access_token=self.token)

    @property
    def directory(self) -> DirectoryCache:
        if self._directory is None:
            self._directory = DirectoryCache(
                self.directory_client(),
                ttl_seconds=self.config.directory_ttl_seconds,
                max_entries=self.config.directory_max_entries,
            )
        return self._directory

    def aggregator(self) -> OrderAggregator:
        return OrderAggregator(self.orders_client(), self.directory)

    def invoice_resolver(self) -> InvoiceResolver:
        return InvoiceResolver(self.aggregator(), self.directory)

    def grid_builder(self) -> PlanogramGridBuilder:
        return PlanogramGridBuilder(self.directory)

    def mutations(self) -> OrderMutationService:
        orders = self.orders_client()
        return OrderMutationService(orders, OrderAggregator(orders, self.directory))

    def use_token(self, token: str | None) -> None:
        self.token = token
        # Cached directory entries and its client belong to the previous identity.
        self._directory = None
