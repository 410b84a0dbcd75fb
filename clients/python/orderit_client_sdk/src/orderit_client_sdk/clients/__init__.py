from .directory_client import DirectoryClient
from .orders_client import OrdersClient

__all__ = ["DirectoryClient", "OrdersClient"]
