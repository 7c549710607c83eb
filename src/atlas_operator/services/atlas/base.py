"""Atlas service interface."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import IPAccessEntry, Project


class AtlasService(Protocol):
    """Protocol defining the Atlas operations used by the reconcilers."""

    def get_project_by_id(self, project_id: str) -> Project:
        """Get a project by its Atlas ID."""
        ...

    def get_project_by_name(self, name: str) -> Project:
        """Get a project by its name."""
        ...

    def list_ip_access_entries(self, project_id: str) -> list[IPAccessEntry]:
        """List the IP access list of a project."""
        ...

    def add_ip_access_entries(self, project_id: str, entries: list[IPAccessEntry]) -> None:
        """Add or update IP access list entries."""
        ...

    def delete_ip_access_entry(self, project_id: str, entry: IPAccessEntry) -> None:
        """Delete one IP access list entry."""
        ...


class TokenProvider(Protocol):
    """Obtains OAuth access tokens for service accounts."""

    def fetch_token(self, client_id: str, client_secret: str) -> tuple[str, datetime]:
        """Return an access token and its expiry time."""
        ...
