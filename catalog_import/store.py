"""
Store Client Module
HTTP client for a PostgREST-style backend holding products and variants.
"""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from .exceptions import StoreError


DEFAULT_TIMEOUT = 30
PRODUCTS_TABLE = 'products'
VARIANTS_TABLE = 'product_variants'
OPTIONS_TABLE = 'variant_options'


class RestProductStore:
    """Create product and variant rows through the backend REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize store client.

        Args:
            base_url: Backend URL, e.g. https://project.example.co
            api_key: Key sent as both apikey and bearer token
            timeout: Seconds to wait for each request
            session: Optional pre-configured session
        """
        self.endpoint = base_url.rstrip('/') + '/rest/v1'
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'Prefer': 'return=representation',
        })

    def create_product(self, fields: Dict[str, Any], owner_id: str) -> str:
        row = dict(fields)
        row['user_id'] = owner_id
        return self._insert(PRODUCTS_TABLE, row)

    def create_variant_options(self, product_id: str, options: List[Dict[str, Any]]) -> None:
        rows = [dict(option, product_id=product_id) for option in options]
        self._post(OPTIONS_TABLE, rows)

    def create_variant(self, product_id: str, fields: Dict[str, Any]) -> str:
        row = dict(fields)
        row['product_id'] = product_id
        return self._insert(VARIANTS_TABLE, row)

    def _insert(self, table: str, row: Dict[str, Any]) -> str:
        """
        Insert one row and return its id.

        Args:
            table: Table name
            row: Column values

        Returns:
            Id of the inserted row

        Raises:
            StoreError: If the backend rejects the insert or returns no row
            requests.RequestException: On transport failures and timeouts
        """
        response = self._post(table, row)

        data = response.json()
        if isinstance(data, list):
            data = data[0] if data else None
        if not data or 'id' not in data:
            raise StoreError(f"Insert into {table} returned no data", status_code=response.status_code)

        return str(data['id'])

    def _post(self, table: str, body: Any) -> requests.Response:
        url = f"{self.endpoint}/{table}"
        logger.debug(f"POST {url}")
        response = self.session.post(url, json=body, timeout=self.timeout)

        if not response.ok:
            raise StoreError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        text = (response.text or '').strip()
        return f"Request failed with status {response.status_code}" + (f": {text[:200]}" if text else '')
