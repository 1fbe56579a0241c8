"""pyrestmodels - Reactive async models and collections over REST resources."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyrestmodels")
except PackageNotFoundError:
    __version__ = "0+local"
from pyrestmodels._transport import HttpTransport, RestResponse, Transport
from pyrestmodels.client import RestClient
from pyrestmodels.collection import Collection
from pyrestmodels.config import RestConfig
from pyrestmodels.events import ModelEvent, Observable, Observer
from pyrestmodels.exceptions import (
    RestConcurrentRequestError,
    RestConfigError,
    RestError,
    RestHttpError,
    RestMethodNotFoundError,
    RestNotFoundError,
    RestRouteError,
    RestRouteNotFoundError,
    RestTransportError,
    RestUnsupportedOperationError,
    RestValidationError,
)
from pyrestmodels.model import Model
from pyrestmodels.paginated import LazyCollection, PaginatedCollection, ScrollableCollection
from pyrestmodels.pagination import PageInfo, PageState, Pagination, PaginationMode
from pyrestmodels.requestable import Requestable
from pyrestmodels.routing import Route

__all__ = [
    "__version__",
    "Collection",
    "HttpTransport",
    "LazyCollection",
    "Model",
    "ModelEvent",
    "Observable",
    "Observer",
    "PageInfo",
    "PageState",
    "PaginatedCollection",
    "Pagination",
    "PaginationMode",
    "Requestable",
    "RestClient",
    "RestConcurrentRequestError",
    "RestConfig",
    "RestConfigError",
    "RestError",
    "RestHttpError",
    "RestMethodNotFoundError",
    "RestNotFoundError",
    "RestResponse",
    "RestRouteError",
    "RestRouteNotFoundError",
    "RestTransportError",
    "RestUnsupportedOperationError",
    "RestValidationError",
    "Route",
    "ScrollableCollection",
    "Transport",
]
