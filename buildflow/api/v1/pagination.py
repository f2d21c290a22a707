"""
Pagination helpers for list endpoints.

Page metadata travels in response headers; the body is the plain item list.
"""
from typing import Optional

from fastapi import Query, Request, Response

from buildflow.domain.entities.pagination import DateFilter, Page, PageRequest, PaginationHelper


def page_request_for(
    resource: str,
    page: Optional[int],
    size: Optional[int],
    sort: Optional[str],
    direction: Optional[str],
) -> PageRequest:
    """Build a PageRequest from raw query parameters using the resource settings."""
    return PaginationHelper.for_resource(resource).build(page=page, size=size, sort=sort, direction=direction)


def set_pagination_headers(response: Response, request: Request, page: Page) -> None:
    """
    Add X-Total-Count / X-Total-Pages / X-Page / X-Size and an RFC 5988 Link header.
    """
    response.headers["X-Total-Count"] = str(page.total)
    response.headers["X-Total-Pages"] = str(page.total_pages)
    response.headers["X-Page"] = str(page.page)
    response.headers["X-Size"] = str(page.size)

    links = []
    url = request.url
    if page.has_next:
        links.append(f'<{url.include_query_params(page=page.page + 1, size=page.size)}>; rel="next"')
    if page.has_previous:
        links.append(f'<{url.include_query_params(page=page.page - 1, size=page.size)}>; rel="prev"')
    links.append(f'<{url.include_query_params(page=0, size=page.size)}>; rel="first"')
    last_page = max(page.total_pages - 1, 0)
    links.append(f'<{url.include_query_params(page=last_page, size=page.size)}>; rel="last"')
    response.headers["Link"] = ", ".join(links)


def date_filter_params(
    created_after: Optional[str] = Query(None, description="ISO-8601 timestamp"),
    created_before: Optional[str] = Query(None, description="ISO-8601 timestamp"),
    updated_after: Optional[str] = Query(None, description="ISO-8601 timestamp"),
    updated_before: Optional[str] = Query(None, description="ISO-8601 timestamp"),
) -> DateFilter:
    """Invalid timestamps are ignored rather than rejected."""
    return DateFilter.from_strings(created_after, created_before, updated_after, updated_before)
