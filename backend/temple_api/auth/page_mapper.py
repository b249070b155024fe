"""Map API endpoint prefixes to the frontend page routes used as grant keys.

``page_permissions.page_url`` stores frontend routes, not API paths, so every
configured endpoint prefix has to be translated before the store is queried.
"""
from __future__ import annotations

from typing import Final

API_SEGMENT: Final[str] = "/api"
ADMIN_API_PREFIX: Final[str] = "/api/admin/"

# Order matters: the first prefix that matches wins.
PAGE_ROUTES: Final[tuple[tuple[str, str], ...]] = (
    ("/api/users", "/admin/users"),
    ("/api/roles", "/roles"),
    ("/api/devotees", "/devotees"),
    ("/api/donations", "/donations"),
    ("/api/events", "/events"),
    ("/api/expense-items", "/event-expense-items"),
    ("/api/expense-services", "/event-expense-services"),
    ("/api/event-expenses", "/event-expenses"),
    ("/api/vouchers", "/vouchers"),
    ("/api/products", "/products"),
    ("/api/sales", "/sales"),
    ("/api/poojas", "/poojas"),
    ("/api/bookings", "/bookings"),
    ("/api/temples", "/temples"),
    ("/api/categories", "/categories"),
    ("/api/areas", "/areas"),
    ("/api/user-roles", "/user-roles"),
    ("/api/auth", "/"),
)


def _strip_api_segment(endpoint: str) -> str:
    if endpoint == API_SEGMENT or endpoint.startswith(API_SEGMENT + "/"):
        endpoint = endpoint[len(API_SEGMENT):]
    return endpoint or "/"


def map_to_page(endpoint: str) -> str:
    """Return the page route that grants for ``endpoint`` are stored under.

    >>> map_to_page("/api/admin/users")
    '/admin/users'
    >>> map_to_page("/api/roles")
    '/roles'
    >>> map_to_page("/api/inventory")
    '/inventory'
    """
    if endpoint.startswith(ADMIN_API_PREFIX):
        return _strip_api_segment(endpoint)

    for prefix, page_url in PAGE_ROUTES:
        if endpoint.startswith(prefix):
            return page_url

    return _strip_api_segment(endpoint)


def known_pages() -> list[str]:
    """Distinct page routes from the mapping table, in table order."""
    pages: list[str] = []
    for _, page_url in PAGE_ROUTES:
        if page_url not in pages:
            pages.append(page_url)
    return pages
