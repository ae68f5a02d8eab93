"""
client.py
---------
Client for the governance platform REST API (accesses, data products, teams,
assets and the event feed), authenticated with an API key.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from mesh_gcp.core.model import AccessGrant, Asset, DataProduct, Team


class DataMeshManagerClient:
    """Client encapsulating the platform REST calls used by the connector."""

    def __init__(self, host: str, api_key: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        """
        Initialize the platform client.

        Args:
            host (str): Base URL of the platform (e.g., https://api.datamesh-manager.com)
            api_key (str): API key sent as ``x-api-key``
            timeout (float): Per-request timeout in seconds
        """
        if not host.startswith("http"):
            raise ValueError("Host must start with http:// or https://")

        self.host = host.rstrip("/")
        self.base_url = f"{self.host}/api"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "x-api-key": api_key,
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )

    # Internal Request Helpers
    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """GET returning the decoded body, or None when the resource does not exist."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        response = self.session.get(url, params=params or {}, timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def _put(self, endpoint: str, body: Dict[str, Any]) -> None:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        response = self.session.put(url, json=body, timeout=self.timeout)
        response.raise_for_status()

    # Accesses
    def get_access(self, access_id: str) -> Optional[AccessGrant]:
        doc = self._get(f"accesses/{access_id}")
        return AccessGrant.from_document(doc) if doc else None

    def put_access(self, grant: AccessGrant) -> None:
        """Create or replace an access; the only write path for grants."""
        self._put(f"accesses/{grant.id}", grant.to_document())

    # Data products and teams
    def get_data_product(self, data_product_id: str) -> Optional[DataProduct]:
        doc = self._get(f"dataproducts/{data_product_id}")
        return DataProduct.from_document(doc) if doc else None

    def get_team(self, team_id: str) -> Optional[Team]:
        doc = self._get(f"teams/{team_id}")
        return Team.from_document(doc) if doc else None

    # Assets
    def put_asset(self, asset: Asset) -> None:
        self._put(f"assets/{asset.id}", asset.to_document())

    # Events
    def get_events(self, last_event_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"lastEventId": last_event_id} if last_event_id else None
        events = self._get("events", params=params)
        return list(events or [])

    def close(self) -> None:
        self.session.close()
