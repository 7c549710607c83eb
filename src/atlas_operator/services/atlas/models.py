"""Models for Atlas Admin API operations."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class APIKeys:
    """Programmatic API key pair."""

    public_key: str = ""
    private_key: str = ""


@dataclass(frozen=True)
class ServiceAccountToken:
    """Bearer token obtained for a service account."""

    bearer_token: str = ""


@dataclass(frozen=True)
class Credentials:
    """Exactly one of API keys or a service account token."""

    api_keys: APIKeys | None = None
    service_account: ServiceAccountToken | None = None


@dataclass(frozen=True)
class ConnectionConfig:
    """Resolved organization ID and credentials for one reconcile."""

    org_id: str = ""
    credentials: Credentials | None = None


@dataclass(frozen=True)
class Project:
    """An Atlas project (group)."""

    id: str
    name: str
    org_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Project:
        return cls(id=data["id"], name=data.get("name", ""), org_id=data.get("orgId", ""))


@dataclass(frozen=True)
class IPAccessEntry:
    """One entry of a project IP access list.

    Single addresses are held as a host CIDR block (/32 or /128), the form
    Atlas echoes them back in, so entries compare equal however they were
    written. An address given together with a CIDR block wins.
    """

    cidr_block: str | None = None
    ip_address: str | None = None
    aws_security_group: str | None = None
    delete_after_date: str | None = None
    comment: str | None = None

    def __post_init__(self) -> None:
        if self.ip_address:
            object.__setattr__(self, "cidr_block", host_network(self.ip_address))
            object.__setattr__(self, "ip_address", None)

    @property
    def key(self) -> str:
        """The value Atlas uses to address the entry."""
        return self.cidr_block or self.aws_security_group or ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> IPAccessEntry:
        return cls(
            cidr_block=data.get("cidrBlock"),
            ip_address=data.get("ipAddress"),
            aws_security_group=data.get("awsSecurityGroup"),
            delete_after_date=data.get("deleteAfterDate"),
            comment=data.get("comment"),
        )

    def to_api(self) -> dict[str, Any]:
        payload = {
            "cidrBlock": self.cidr_block,
            "ipAddress": self.ip_address,
            "awsSecurityGroup": self.aws_security_group,
            "deleteAfterDate": self.delete_after_date,
            "comment": self.comment,
        }
        return {k: v for k, v in payload.items() if v}


@dataclass
class IPAccessListDiff:
    """Entries to add to and remove from Atlas to reach the desired list."""

    to_add: list[IPAccessEntry] = field(default_factory=list)
    to_remove: list[IPAccessEntry] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.to_add and not self.to_remove


def host_network(address: str) -> str:
    """Return the single-host CIDR block for an IP address.

    Raises:
        ValueError: If the address is not a valid IPv4 or IPv6 address
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError as e:
        raise ValueError(f"ip {address} is invalid") from e
    return f"{ip}/{ip.max_prefixlen}"


def canonical_key(key: str) -> str:
    """Normalize an entry key, turning a bare IP address into its host block."""
    try:
        return host_network(key)
    except ValueError:
        return key
