"""
Catalog handler - Pages through entities of the software catalog API.
"""

from typing import Optional

import requests

from core.errors import FetchError
from core.settings import WebhookSettings
from models.entity import EntityPage, EntityRecord
from models.filters import EntityFilter

from .base_handler import BaseHandler


class CatalogHandler(BaseHandler):
    """Client for GET {catalog_url}/entities with limit/offset pagination."""

    error_class = FetchError

    def __init__(self, settings: WebhookSettings, session: requests.Session = None):
        super().__init__(settings, session)
        self.url = f"{settings.catalog_url}/entities"

    def get_method_name(self) -> str:
        return "catalog fetch"

    def fetch_entities(
        self,
        entity_filter: Optional[EntityFilter],
        limit: int,
        offset: int,
        token: str,
        deadline: Optional[float] = None
    ) -> EntityPage:
        """
        Fetch one page of entities.

        Args:
            entity_filter: Filter to apply, None or empty for all entities
            limit: Page size
            offset: Number of entities to skip
            token: Bearer token for the catalog
            deadline: time.monotonic() deadline of the current run

        Returns:
            EntityPage with the entities of this page

        Raises:
            FetchError: on network errors, non-2xx status or an unexpected body
        """
        params = [('limit', limit), ('offset', offset)]
        if entity_filter:
            params.extend(entity_filter.to_query_params())

        headers = {
            'Accept': 'application/json',
            'Authorization': f"Bearer {token}",
        }

        self.logger.debug(f"Fetching entities offset={offset} limit={limit}")
        response = self.request('GET', self.url, deadline=deadline, headers=headers, params=params)

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Catalog response is not valid JSON: {e}") from e

        # The legacy endpoint returns a bare list, newer ones wrap it in items
        if isinstance(data, dict):
            data = data.get('items')
        if not isinstance(data, list):
            raise FetchError("Catalog response does not contain a list of entities")

        items = [EntityRecord.from_dict(item) for item in data if isinstance(item, dict)]
        if len(items) < len(data):
            self.logger.warning(f"Skipped {len(data) - len(items)} malformed entities at offset {offset}")
        return EntityPage(items=items, offset=offset, received=len(data))
