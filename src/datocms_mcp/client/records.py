"""Records-specialized client: query building and editor URLs."""

import re
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from .base import DEFAULT_PAGE_LIMIT, Page
from .resources import DatoCMSClient

FILTER_OPERATORS = (
    "eq", "neq", "all_in", "any_in", "exists", "gt", "gte", "lt", "lte",
    "in", "not_in", "matches", "not_matches", "is_blank", "is_present",
)


def build_field_filters(fields: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Normalize field filters to {field: {operator: value}}.

    A bare value means equality: {"name": "Emily"} is {"name": {"eq": "Emily"}}.
    """
    normalized: Dict[str, Dict[str, Any]] = {}
    for name, condition in fields.items():
        if isinstance(condition, Mapping) and condition and set(condition) <= set(FILTER_OPERATORS):
            normalized[name] = dict(condition)
        else:
            normalized[name] = {"eq": condition}
    return normalized


def editor_url(project_url: str, item_type_id: str, item_id: str, environment: Optional[str] = None) -> str:
    """Build the DatoCMS editor URL of a record."""
    domain = re.sub(r"^https?://", "", project_url.strip()).rstrip("/")
    url = f"https://{domain}/editor/item_types/{item_type_id}/items/{item_id}/edit"
    if environment:
        url += f"?environment={quote(environment, safe='')}"
    return url


class RecordsClient(DatoCMSClient):
    """Client used by record tools."""

    async def query_records(
        self,
        text_search: Optional[str] = None,
        ids: Optional[List[str]] = None,
        model: Optional[str] = None,
        fields: Optional[Mapping[str, Any]] = None,
        locale: Optional[str] = None,
        order_by: Optional[str] = None,
        version: str = "current",
        nested: bool = True,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> Page:
        """
        Query records with the CMA item filters.

        Args:
            text_search: Full-text query
            ids: Record ids
            model: Model id or API key restricting the results
            fields: Field filters, only valid together with model
            locale: Locale used for localized field filters
            order_by: "<field>_(ASC|DESC)"
            version: "current" or "published"
            nested: Return full block payloads
            offset: Page offset
            limit: Page size

        Returns:
            One page of records
        """
        filters: Dict[str, Any] = {}
        if text_search:
            filters["query"] = text_search
        if ids:
            filters["ids"] = ids
        if model:
            filters["type"] = model
        if fields:
            filters["fields"] = build_field_filters(fields)

        params: Dict[str, Any] = {"version": version, "nested": nested}
        if filters:
            params["filter"] = filters
        if locale:
            params["locale"] = locale
        if order_by:
            params["order_by"] = order_by

        return await self.items.list_page(params, offset=offset, limit=limit)

    async def find_record(self, item_id: str, version: str = "published", nested: bool = True) -> Optional[Dict[str, Any]]:
        return await self.items.find(item_id, params={"version": version, "nested": nested})
