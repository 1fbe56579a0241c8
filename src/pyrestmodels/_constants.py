"""Internal constants shared across the library."""

from types import MappingProxyType

USER_AGENT = "pyrestmodels/aiohttp"

#: Default action -> HTTP method table (Laravel resource conventions).
DEFAULT_METHODS: MappingProxyType[str, str] = MappingProxyType(
    {
        "fetch": "GET",
        "save": "POST",
        "patch": "PATCH",
        "update": "PUT",
        "delete": "DELETE",
    }
)

#: HTTP methods whose payload is sent as a JSON body instead of query parameters.
BODY_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH"})

#: Status code used by the backend to report field validation failures.
VALIDATION_ERROR_CODE = 422

NOT_FOUND_CODE = 404

# ------------------------------------------------------------------
# Pagination
# ------------------------------------------------------------------

DEFAULT_PAGE_PARAMETER = "page"
DEFAULT_NEXT_PAGE_MARKER = "next_page_url"
