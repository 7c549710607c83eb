"""Builder for IP access list entries."""

from __future__ import annotations

from typing import Any

from ..services.atlas.models import IPAccessEntry, IPAccessListDiff


def entries_from_spec(spec: dict[str, Any]) -> list[IPAccessEntry]:
    """Create the desired access list entries from an AtlasIPAccessList spec.

    Raises:
        ValueError: If an entry names no address, CIDR block or security group
    """
    entries = []
    for item in spec.get("entries") or []:
        entry = IPAccessEntry(
            cidr_block=item.get("cidrBlock"),
            ip_address=item.get("ipAddress"),
            aws_security_group=item.get("awsSecurityGroup"),
            delete_after_date=item.get("deleteAfterDate"),
            comment=item.get("comment"),
        )
        if not entry.key:
            raise ValueError("each entry needs one of cidrBlock, ipAddress or awsSecurityGroup")
        entries.append(entry)
    return entries


def compute_diff(desired: list[IPAccessEntry], current: list[IPAccessEntry]) -> IPAccessListDiff:
    """Compare the desired entries with those in Atlas.

    Entries present in Atlas but not desired are removed; desired entries
    missing from Atlas, or differing in any field, are (re)added.
    """
    desired_keys = {entry.key for entry in desired}
    current_set = set(current)
    return IPAccessListDiff(
        to_add=[entry for entry in desired if entry not in current_set],
        to_remove=[entry for entry in current if entry.key not in desired_keys],
    )
