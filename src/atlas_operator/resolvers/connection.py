"""Resolution of the Atlas connection configuration for a resource.

Precedence, highest first:

1. the connection secret named on the resource itself (same namespace),
2. the connection secret of the AtlasProject the resource references,
3. the operator-wide global secret.

A resource referencing an Atlas project by ID must name its own secret.
"""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client

from ..constants import (
    ANNOTATION_ACCESS_TOKEN,
    KIND_PROJECT,
    SECRET_ACCESS_TOKEN,
    SECRET_CLIENT_ID,
    SECRET_CLIENT_SECRET,
    SECRET_ORG_ID,
    SECRET_PRIVATE_KEY,
    SECRET_PUBLIC_KEY,
)
from ..services.atlas.models import APIKeys, ConnectionConfig, Credentials, ServiceAccountToken
from ..services.kube.store import ObjectStore
from ..utils.errors import MissingKubeProjectError, ObjectNotFoundError, ResolutionError
from ..utils.secrets import decode_secret_data, read_secret, read_secret_data
from .references import ProjectDualReference, ResourceRef

logger = logging.getLogger(__name__)

SecretKey = tuple[str, str]


def compute_secret(
    project: dict[str, Any] | None,
    resource: dict[str, Any] | None,
) -> SecretKey | None:
    """Pick the connection secret for a resource and its AtlasProject.

    Returns:
        (namespace, name) of the secret, or None when neither object names
        one and the global secret applies

    Raises:
        ResolutionError: If no resource is given
    """
    if resource is None:
        raise ResolutionError("resource cannot be empty")

    resource_meta = resource.get("metadata", {})
    ref = ProjectDualReference.from_spec(resource.get("spec"))
    if ref.connection_secret:
        return resource_meta.get("namespace", "default"), ref.connection_secret

    if project is None:
        return None

    project_secret = ResourceRef.from_spec(project.get("spec", {}).get("connectionSecretRef"))
    if project_secret is None:
        return None
    project_ns = project.get("metadata", {}).get("namespace", "default")
    return project_secret.namespace or project_ns, project_secret.name


def validate(config: ConnectionConfig | None) -> tuple[list[str], bool]:
    """Report which connection fields are missing.

    Returns:
        The missing secret keys, in secret-key order, and whether the
        configuration is usable
    """
    if config is None:
        return [SECRET_ORG_ID, SECRET_PUBLIC_KEY, SECRET_PRIVATE_KEY], False

    missing = []
    if not config.org_id:
        missing.append(SECRET_ORG_ID)

    credentials = config.credentials
    if credentials is not None and credentials.service_account is not None:
        if not credentials.service_account.bearer_token:
            missing.append(SECRET_ACCESS_TOKEN)
        return missing, not missing

    api_keys = credentials.api_keys if credentials is not None else None
    if api_keys is None or not api_keys.public_key:
        missing.append(SECRET_PUBLIC_KEY)
    if api_keys is None or not api_keys.private_key:
        missing.append(SECRET_PRIVATE_KEY)

    return missing, not missing


def get_connection_config(api: client.CoreV1Api, namespace: str, name: str) -> ConnectionConfig:
    """Read and validate the connection secret ``namespace/name``.

    Raises:
        ResolutionError: If the secret is missing, mixes credential types,
            or lacks required fields
    """
    try:
        secret = read_secret(api, namespace, name)
    except ObjectNotFoundError as e:
        raise ResolutionError(f"connection secret {namespace}/{name} not found") from e

    data = decode_secret_data(secret)
    has_api_keys = SECRET_PUBLIC_KEY in data or SECRET_PRIVATE_KEY in data
    has_service_account = SECRET_CLIENT_ID in data or SECRET_CLIENT_SECRET in data

    if has_api_keys and has_service_account:
        raise ResolutionError(
            f"secret {namespace}/{name} contains both API key and service account credentials"
        )

    if has_service_account:
        config = _service_account_config(api, namespace, name, secret, data)
    else:
        config = ConnectionConfig(
            org_id=data.get(SECRET_ORG_ID, ""),
            credentials=Credentials(
                api_keys=APIKeys(
                    public_key=data.get(SECRET_PUBLIC_KEY, ""),
                    private_key=data.get(SECRET_PRIVATE_KEY, ""),
                )
            ),
        )

    missing, ok = validate(config)
    if not ok:
        raise ResolutionError(
            f"the following fields are missing in the secret {namespace}/{name}: {', '.join(missing)}"
        )
    return config


def _service_account_config(
    api: client.CoreV1Api,
    namespace: str,
    name: str,
    secret: client.V1Secret,
    data: dict[str, str],
) -> ConnectionConfig:
    annotations = secret.metadata.annotations or {}
    token_secret_name = annotations.get(ANNOTATION_ACCESS_TOKEN)
    if not token_secret_name:
        raise ResolutionError(
            f"service account secret {namespace}/{name} is missing the {ANNOTATION_ACCESS_TOKEN} annotation"
        )

    try:
        token_data = read_secret_data(api, namespace, token_secret_name)
    except ObjectNotFoundError as e:
        raise ResolutionError(f"access token secret {namespace}/{token_secret_name} not found") from e

    token = token_data.get(SECRET_ACCESS_TOKEN, "")
    if not token:
        raise ResolutionError(f"access token secret {namespace}/{token_secret_name} has empty accessToken")

    return ConnectionConfig(
        org_id=data.get(SECRET_ORG_ID, ""),
        credentials=Credentials(service_account=ServiceAccountToken(bearer_token=token)),
    )


class ConnectionResolver:
    """Resolves connection configs against a cluster."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        projects: ObjectStore,
        global_secret: SecretKey,
    ):
        self.core_api = core_api
        self.projects = projects
        self.global_secret = global_secret

    def get_project(self, referrer: dict[str, Any], ref: ResourceRef) -> dict[str, Any]:
        """Load the AtlasProject a projectRef points at.

        The namespace defaults to the referrer's own namespace.

        Raises:
            MissingKubeProjectError: If the AtlasProject does not exist
        """
        namespace = ref.namespace or referrer.get("metadata", {}).get("namespace", "default")
        try:
            return self.projects.get(namespace, ref.name)
        except ObjectNotFoundError as e:
            raise MissingKubeProjectError(ref.name, namespace) from e

    def resolve_secret(self, referrer: dict[str, Any]) -> SecretKey:
        """Pick the secret holding the referrer's credentials."""
        ref = ProjectDualReference.from_spec(referrer.get("spec"))

        if ref.external_project_id and not ref.connection_secret:
            raise ResolutionError(
                "local connection secret required: externalProjectRef is set but connectionSecret is not"
            )

        project = None
        if ref.connection_secret is None:
            if ref.project_ref is not None:
                project = self.get_project(referrer, ref.project_ref)
            elif referrer.get("kind") == KIND_PROJECT:
                project = referrer

        return compute_secret(project, referrer) or self.global_secret

    def resolve_connection_config(
        self,
        referrer: dict[str, Any],
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> ConnectionConfig:
        """Resolve the organization ID and credentials for a referrer.

        Raises:
            MissingKubeProjectError: If a projectRef points at a missing AtlasProject
            ResolutionError: If the chosen secret fails validation
        """
        log = log or logger
        namespace, name = self.resolve_secret(referrer)
        log.debug(f"Using connection secret {namespace}/{name}")
        return get_connection_config(self.core_api, namespace, name)
