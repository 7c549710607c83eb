"""Atlas Admin API client implementation."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import quote, urljoin

import requests
from requests.auth import AuthBase, HTTPDigestAuth

from ... import metrics
from ...utils.errors import AtlasAPIError, AtlasNotFoundError, ResolutionError
from ...utils.rate_limit import rate_limit_atlas
from .models import ConnectionConfig, IPAccessEntry, Project

logger = logging.getLogger(__name__)

API_PATH = "api/atlas/v2/"
API_MEDIA_TYPE = "application/vnd.atlas.2023-01-01+json"
DEFAULT_TIMEOUT = 30.0


class BearerAuth(AuthBase):
    """Attaches a service account bearer token."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request


def auth_from_connection(connection: ConnectionConfig) -> AuthBase:
    """Build the requests auth handler for resolved credentials."""
    credentials = connection.credentials
    if credentials is not None and credentials.service_account is not None:
        return BearerAuth(credentials.service_account.bearer_token)
    if credentials is not None and credentials.api_keys is not None:
        return HTTPDigestAuth(credentials.api_keys.public_key, credentials.api_keys.private_key)
    raise ResolutionError("connection config carries no credentials")


class AtlasClient:
    """Atlas Admin API v2 client."""

    def __init__(
        self,
        domain: str,
        auth: AuthBase,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            domain: Atlas base URL, e.g. https://cloud.mongodb.com/
            auth: Digest (API keys) or bearer (service account) auth
            timeout: Per-request timeout in seconds
            session: Optional session to reuse connections
        """
        self.base_url = urljoin(domain if domain.endswith("/") else domain + "/", API_PATH)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = auth
        self.session.headers.update({
            "Accept": API_MEDIA_TYPE,
            "Content-Type": API_MEDIA_TYPE,
            "User-Agent": "atlas-operator",
        })

    @classmethod
    def from_connection(cls, domain: str, connection: ConnectionConfig) -> AtlasClient:
        return cls(domain, auth_from_connection(connection))

    def _request(self, operation: str, method: str, path: str, **kwargs: Any) -> Any:
        url = urljoin(self.base_url, path)
        start_time = time.time()
        try:
            response = rate_limit_atlas(self.session.request)(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException:
            metrics.api_call_total.labels(api_type="atlas", operation=operation, result="error").inc()
            raise
        finally:
            metrics.api_call_duration_seconds.labels(api_type="atlas", operation=operation).observe(
                time.time() - start_time
            )

        if response.status_code == 429:
            metrics.rate_limit_hits_total.labels(api_type="atlas").inc()

        if not response.ok:
            metrics.api_call_total.labels(api_type="atlas", operation=operation, result="error").inc()
            error_code = None
            detail = response.text
            try:
                payload = response.json()
                error_code = payload.get("errorCode")
                detail = payload.get("detail", detail)
            except ValueError:
                pass
            if response.status_code == 404:
                raise AtlasNotFoundError(response.status_code, error_code, detail)
            raise AtlasAPIError(response.status_code, error_code, detail)

        metrics.api_call_total.labels(api_type="atlas", operation=operation, result="success").inc()
        if not response.content:
            return None
        return response.json()

    def get_project_by_id(self, project_id: str) -> Project:
        """Get a project by its Atlas ID."""
        data = self._request("get_project", "GET", f"groups/{quote(project_id, safe='')}")
        return Project.from_api(data)

    def get_project_by_name(self, name: str) -> Project:
        """Get a project by its name."""
        data = self._request("get_project_by_name", "GET", f"groups/byName/{quote(name, safe='')}")
        return Project.from_api(data)

    def list_ip_access_entries(self, project_id: str) -> list[IPAccessEntry]:
        """List the IP access list of a project, following pagination."""
        entries: list[IPAccessEntry] = []
        page = 1
        while True:
            data = self._request(
                "list_ip_access_entries",
                "GET",
                f"groups/{quote(project_id, safe='')}/accessList",
                params={"pageNum": page, "itemsPerPage": 500},
            )
            results = data.get("results", [])
            entries.extend(IPAccessEntry.from_api(item) for item in results)
            if not results or len(entries) >= data.get("totalCount", 0):
                return entries
            page += 1

    def add_ip_access_entries(self, project_id: str, entries: list[IPAccessEntry]) -> None:
        """Add or update IP access list entries."""
        self._request(
            "add_ip_access_entries",
            "POST",
            f"groups/{quote(project_id, safe='')}/accessList",
            json=[entry.to_api() for entry in entries],
        )
        logger.info(f"Added {len(entries)} IP access list entries to project {project_id}")

    def delete_ip_access_entry(self, project_id: str, entry: IPAccessEntry) -> None:
        """Delete one IP access list entry."""
        self._request(
            "delete_ip_access_entry",
            "DELETE",
            f"groups/{quote(project_id, safe='')}/accessList/{quote(entry.key, safe='')}",
        )
