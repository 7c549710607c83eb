"""Tests for the AtlasIPAccessList handler."""

from __future__ import annotations

import logging
from unittest.mock import Mock

import pytest

from atlas_operator.config import OperatorConfig
from atlas_operator.handlers.ipaccesslist import IPAccessListHandler
from atlas_operator.services.atlas.models import APIKeys, ConnectionConfig, Credentials, IPAccessEntry, Project
from atlas_operator.state.states import LifecycleState
from atlas_operator.utils.errors import AtlasNotFoundError, MissingKubeProjectError

LOG = logging.getLogger(__name__)

CONNECTION = ConnectionConfig(org_id="org-1", credentials=Credentials(api_keys=APIKeys("pub", "priv")))


def _body(entries, annotations=None, status=None):
    body = {
        "kind": "AtlasIPAccessList",
        "metadata": {"name": "office", "namespace": "default", "annotations": annotations or {}},
        "spec": {"externalProjectRef": {"id": "p-1"}, "connectionSecret": {"name": "keys"}, "entries": entries},
    }
    if status is not None:
        body["status"] = status
    return body


@pytest.fixture
def atlas():
    atlas = Mock()
    atlas.get_project_by_id.return_value = Project(id="p-1", name="My Project")
    atlas.list_ip_access_entries.return_value = []
    return atlas


@pytest.fixture
def resolver():
    resolver = Mock()
    resolver.resolve_connection_config.return_value = CONNECTION
    return resolver


def _handler(resolver, atlas, deletion_protection=False):
    config = OperatorConfig(atlas_domain="https://cloud.mongodb.com/", object_deletion_protection=deletion_protection)
    factory = Mock(return_value=atlas)
    return IPAccessListHandler(resolver, config, atlas_factory=factory), factory


class TestHandleUpdated:
    """Test cases for convergence."""

    def test_adds_missing_entries(self, resolver, atlas):
        """Test missing entries are added to the project."""
        handler, factory = _handler(resolver, atlas)

        result = handler.handle_updated(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)

        assert result.next_state == LifecycleState.UPDATED
        factory.assert_called_once_with("https://cloud.mongodb.com/", CONNECTION)
        atlas.add_ip_access_entries.assert_called_once_with("p-1", [IPAccessEntry(cidr_block="10.0.0.0/24")])
        atlas.delete_ip_access_entry.assert_not_called()

    def test_no_calls_when_in_sync(self, resolver, atlas):
        """Test an unchanged list issues no updates."""
        atlas.list_ip_access_entries.return_value = [IPAccessEntry(cidr_block="10.0.0.0/24")]
        handler, _ = _handler(resolver, atlas)

        result = handler.handle_updated(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)

        assert result.next_state == LifecycleState.UPDATED
        atlas.add_ip_access_entries.assert_not_called()
        atlas.delete_ip_access_entry.assert_not_called()

    def test_removes_unwanted_entries(self, resolver, atlas):
        """Test entries not in the spec are removed."""
        atlas.list_ip_access_entries.return_value = [
            IPAccessEntry(cidr_block="10.0.0.0/24"),
            IPAccessEntry(cidr_block="0.0.0.0/0"),
        ]
        handler, _ = _handler(resolver, atlas)

        handler.handle_updated(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)

        atlas.delete_ip_access_entry.assert_called_once_with("p-1", IPAccessEntry(cidr_block="0.0.0.0/0"))
        atlas.add_ip_access_entries.assert_not_called()

    def test_records_status(self, resolver, atlas):
        """Test the project ID and entries are recorded in status."""
        handler, _ = _handler(resolver, atlas)
        result = handler.handle_updated(_body([{"ipAddress": "192.0.2.10"}]), LOG)

        status = {}
        result.apply_status(status)

        assert status == {"projectId": "p-1", "entries": ["192.0.2.10/32"]}

    def test_resolution_errors_propagate(self, resolver, atlas):
        """Test credential problems surface as handler errors."""
        resolver.resolve_connection_config.side_effect = MissingKubeProjectError("my-project", "default")
        handler, _ = _handler(resolver, atlas)

        with pytest.raises(MissingKubeProjectError):
            handler.handle_updated(_body([]), LOG)


class TestHandleDeletion:
    """Test cases for deletion."""

    def test_protected_deletion_leaves_atlas(self, resolver, atlas):
        """Test deletion protection releases the object without Atlas calls."""
        handler, factory = _handler(resolver, atlas, deletion_protection=True)

        result = handler.handle_deletion_requested(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)

        assert result.next_state == LifecycleState.DELETED
        factory.assert_not_called()

    def test_keep_policy_leaves_atlas(self, resolver, atlas):
        """Test the keep resource policy releases the object without Atlas calls."""
        handler, factory = _handler(resolver, atlas)
        body = _body([{"cidrBlock": "10.0.0.0/24"}], annotations={"mongodb.com/atlas-resource-policy": "keep"})

        assert handler.handle_deletion_requested(body, LOG).next_state == LifecycleState.DELETED
        factory.assert_not_called()

    def test_deletes_managed_entries(self, resolver, atlas):
        """Test only entries managed by the object are removed."""
        atlas.list_ip_access_entries.return_value = [
            IPAccessEntry(cidr_block="10.0.0.0/24"),
            IPAccessEntry(ip_address="192.0.2.10"),
            IPAccessEntry(cidr_block="172.16.0.0/16"),
        ]
        handler, _ = _handler(resolver, atlas)
        body = _body([{"cidrBlock": "10.0.0.0/24"}], status={"entries": ["10.0.0.0/24", "192.0.2.10"]})

        result = handler.handle_deletion_requested(body, LOG)

        assert result.next_state == LifecycleState.DELETED
        deleted = [c[0][1].key for c in atlas.delete_ip_access_entry.call_args_list]
        assert deleted == ["10.0.0.0/24", "192.0.2.10/32"]

    def test_delete_policy_overrides_protection(self, resolver, atlas):
        """Test the delete resource policy cleans up despite deletion protection."""
        atlas.list_ip_access_entries.return_value = [IPAccessEntry(cidr_block="10.0.0.0/24")]
        handler, _ = _handler(resolver, atlas, deletion_protection=True)
        body = _body([{"cidrBlock": "10.0.0.0/24"}], annotations={"mongodb.com/atlas-resource-policy": "delete"})

        handler.handle_deletion_requested(body, LOG)

        atlas.delete_ip_access_entry.assert_called_once()

    def test_missing_atlas_project(self, resolver, atlas):
        """Test a project already gone from Atlas needs no cleanup."""
        atlas.get_project_by_id.side_effect = AtlasNotFoundError(404, "GROUP_NOT_FOUND")
        handler, _ = _handler(resolver, atlas)

        result = handler.handle_deletion_requested(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)

        assert result.next_state == LifecycleState.DELETED
        atlas.delete_ip_access_entry.assert_not_called()

    def test_atlas_errors_propagate(self, resolver, atlas):
        """Test other Atlas failures keep the object for retry."""
        atlas.list_ip_access_entries.side_effect = RuntimeError("Atlas unreachable")
        handler, _ = _handler(resolver, atlas)

        with pytest.raises(RuntimeError):
            handler.handle_deletion_requested(_body([{"cidrBlock": "10.0.0.0/24"}]), LOG)
