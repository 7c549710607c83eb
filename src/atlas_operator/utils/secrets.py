"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from kubernetes import client

from ..constants import FIELD_MANAGER
from .errors import ObjectNotFoundError
from .rate_limit import rate_limit_k8s


def decode_secret_data(secret: client.V1Secret) -> dict[str, str]:
    """Decode the data of a secret into plain strings.

    Handles both base64 strings (as returned by the API) and raw bytes.
    """
    result = {}
    for key, value in (secret.data or {}).items():
        if isinstance(value, bytes):
            result[key] = value.decode("utf-8")
            continue
        try:
            result[key] = base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            result[key] = value
    return result


def encode_secret_data(data: dict[str, str]) -> dict[str, str]:
    """Base64 encode secret values for the Kubernetes API."""
    return {k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()}


def read_secret(api: client.CoreV1Api, namespace: str, secret_name: str) -> client.V1Secret:
    """Read a secret, raising ObjectNotFoundError when it does not exist."""
    try:
        return rate_limit_k8s(api.read_namespaced_secret)(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ObjectNotFoundError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise


def read_secret_data(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> dict[str, str]:
    """Read all data from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret

    Returns:
        Dictionary of secret data (decoded)

    Raises:
        ObjectNotFoundError: If secret not found
    """
    return decode_secret_data(read_secret(api, namespace, secret_name))


def create_secret(
    api: client.CoreV1Api,
    namespace: str,
    data: dict[str, str],
    name: str | None = None,
    generate_name: str | None = None,
    labels: dict[str, str] | None = None,
    owner_references: list[client.V1OwnerReference] | None = None,
) -> client.V1Secret:
    """Create a Kubernetes secret and return the created object.

    Args:
        api: Kubernetes API client
        namespace: Namespace for the secret
        data: Secret data (will be base64 encoded)
        name: Fixed name of the secret
        generate_name: Name prefix for a server-generated name
        labels: Labels for the secret
        owner_references: Owner references for the secret
    """
    secret = client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=name,
            generate_name=generate_name,
            namespace=namespace,
            labels=labels or {},
            owner_references=owner_references or [],
        ),
        type="Opaque",
        data=encode_secret_data(data),
    )

    return rate_limit_k8s(api.create_namespaced_secret)(
        namespace=namespace,
        body=secret,
        field_manager=FIELD_MANAGER,
    )


def replace_secret_data(
    api: client.CoreV1Api,
    secret: client.V1Secret,
    data: dict[str, str],
) -> client.V1Secret:
    """Replace the data of an existing secret.

    The secret's resourceVersion is sent along, so a concurrent change
    makes the write fail with a 409 conflict.
    """
    secret.data = encode_secret_data(data)
    return rate_limit_k8s(api.replace_namespaced_secret)(
        name=secret.metadata.name,
        namespace=secret.metadata.namespace,
        body=secret,
        field_manager=FIELD_MANAGER,
    )


def annotate_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    annotations: dict[str, str],
) -> None:
    """Merge annotations into an existing secret."""
    body: dict[str, Any] = {"metadata": {"annotations": annotations}}
    rate_limit_k8s(api.patch_namespaced_secret)(
        name=secret_name,
        namespace=namespace,
        body=body,
        field_manager=FIELD_MANAGER,
    )
