"""Access to custom objects stored in the Kubernetes API server."""

from __future__ import annotations

import time
from typing import Any, Callable

from kubernetes import client, config

from ... import metrics
from ...constants import API_GROUP, API_VERSION, FIELD_MANAGER
from ...utils.errors import ConflictError, ObjectNotFoundError
from ...utils.rate_limit import handle_rate_limit_error, rate_limit_k8s


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


class ObjectStore:
    """Reads and writes one kind of custom object.

    Writes carry the object's ``resourceVersion``, so a write racing with a
    newer version of the object fails with ConflictError instead of
    overwriting it.
    """

    def __init__(
        self,
        api: client.CustomObjectsApi,
        plural: str,
        group: str = API_GROUP,
        version: str = API_VERSION,
    ):
        self.api = api
        self.plural = plural
        self.group = group
        self.version = version

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        attempt = 0
        start_time = time.time()
        try:
            while True:
                try:
                    result = rate_limit_k8s(fn)(
                        group=self.group,
                        version=self.version,
                        plural=self.plural,
                        **kwargs,
                    )
                    metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
                    return result
                except client.exceptions.ApiException as e:
                    if handle_rate_limit_error(e, attempt):
                        attempt += 1
                        continue
                    metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
                    name = kwargs.get("name")
                    namespace = kwargs.get("namespace")
                    if e.status == 404:
                        raise ObjectNotFoundError(
                            f"{self.plural} {namespace}/{name} not found"
                        ) from e
                    if e.status == 409:
                        raise ConflictError(
                            f"{self.plural} {namespace}/{name} was modified concurrently"
                        ) from e
                    raise
        finally:
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(
                time.time() - start_time
            )

    def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch an object.

        Raises:
            ObjectNotFoundError: If the object does not exist
        """
        return self._call(
            f"get_{self.plural}",
            self.api.get_namespaced_custom_object,
            namespace=namespace,
            name=name,
        )

    def set_finalizers(self, body: dict[str, Any], finalizers: list[str]) -> dict[str, Any]:
        """Replace the object's finalizer list and return the updated object."""
        meta = body["metadata"]
        patch = {
            "metadata": {
                "finalizers": finalizers,
                "resourceVersion": meta.get("resourceVersion"),
            }
        }
        return self._call(
            f"patch_{self.plural}",
            self.api.patch_namespaced_custom_object,
            namespace=meta["namespace"],
            name=meta["name"],
            body=patch,
            field_manager=FIELD_MANAGER,
        )

    def patch_status(self, body: dict[str, Any], status: dict[str, Any]) -> dict[str, Any]:
        """Write the status subresource and return the updated object."""
        meta = body["metadata"]
        patch = {
            "metadata": {"resourceVersion": meta.get("resourceVersion")},
            "status": status,
        }
        return self._call(
            f"patch_{self.plural}_status",
            self.api.patch_namespaced_custom_object_status,
            namespace=meta["namespace"],
            name=meta["name"],
            body=patch,
            field_manager=FIELD_MANAGER,
        )

    def patch_annotations(self, body: dict[str, Any], annotations: dict[str, str]) -> dict[str, Any]:
        """Merge annotations into the object's metadata and return the updated object."""
        meta = body["metadata"]
        patch = {
            "metadata": {
                "annotations": annotations,
                "resourceVersion": meta.get("resourceVersion"),
            }
        }
        return self._call(
            f"patch_{self.plural}",
            self.api.patch_namespaced_custom_object,
            namespace=meta["namespace"],
            name=meta["name"],
            body=patch,
            field_manager=FIELD_MANAGER,
        )
