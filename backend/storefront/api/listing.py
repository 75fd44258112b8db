"""
Generic paginated listing

Every collection endpoint (users, stores, products, orders, categories)
goes through ``paginated_list`` so filtering, projection, sorting and
pagination behave identically everywhere.
"""
import logging
from typing import Any, List

from fastapi import Request

from storefront.core.config import Settings
from storefront.core.query import ListQuery
from storefront.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


def paginated_list(
    repository: BaseRepository,
    request: Request,
    settings: Settings,
    conditions: List[str] = None,
    params: List[Any] = None
) -> dict:
    """
    Build the listing envelope for a collection

    Args:
        repository: repository of the collection
        request: incoming request; its query string is the list query
        settings: supplies the default page size
        conditions: extra SQL conditions (access scoping)
        params: parameters for the extra conditions

    Returns:
        {error, count, total, pagination, data}
    """
    query = ListQuery.from_params(
        request.query_params.multi_items(),
        repository.schema,
        default_limit=settings.DEFAULT_PAGE_LIMIT,
    )
    page = repository.find_page(query, conditions, params)
    logger.debug(f"Listed {page.count}/{page.total} from {repository.table} (page {page.page})")
    return page.to_response()


def envelope(data: Any = None, message: str = None, **extra) -> dict:
    """Success body shared by the non-listing endpoints"""
    body = {"error": False}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
