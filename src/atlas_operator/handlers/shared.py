"""Shared clients and settings for handlers."""

from __future__ import annotations

from functools import lru_cache

from kubernetes import client

from ..config import OperatorConfig
from ..constants import PLURAL_PROJECT
from ..resolvers.connection import ConnectionResolver
from ..services.kube.store import ObjectStore, load_kube_config


@lru_cache(maxsize=1)
def get_config() -> OperatorConfig:
    """Get the operator configuration, read once from the environment."""
    return OperatorConfig.from_env()


@lru_cache(maxsize=1)
def get_api_client() -> client.ApiClient:
    """Get the Kubernetes API client, loading cluster credentials once."""
    load_kube_config()
    return client.ApiClient()


def get_core_api() -> client.CoreV1Api:
    return client.CoreV1Api(get_api_client())


def get_custom_objects_api() -> client.CustomObjectsApi:
    return client.CustomObjectsApi(get_api_client())


def get_store(plural: str) -> ObjectStore:
    """Get an object store for the given custom resource plural."""
    return ObjectStore(get_custom_objects_api(), plural)


@lru_cache(maxsize=1)
def get_connection_resolver() -> ConnectionResolver:
    """Get the connection resolver bound to the operator's global secret."""
    config = get_config()
    return ConnectionResolver(
        core_api=get_core_api(),
        projects=get_store(PLURAL_PROJECT),
        global_secret=(config.global_secret_namespace, config.global_secret_name),
    )
