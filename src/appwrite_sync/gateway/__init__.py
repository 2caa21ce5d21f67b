"""Remote resource gateway over the project HTTP API."""

from appwrite_sync.gateway.client import ApiClient
from appwrite_sync.gateway.factory import Gateways, create_gateways
from appwrite_sync.gateway.queries import Query, paginate

__all__ = ["ApiClient", "Gateways", "Query", "create_gateways", "paginate"]
