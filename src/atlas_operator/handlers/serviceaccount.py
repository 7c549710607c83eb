"""Access token refresh for service account credential secrets.

A credential secret holding ``clientId`` and ``clientSecret`` gets a
companion token secret, named in its access-token annotation, holding a
bearer token and its expiry. Tokens are renewed once two thirds of their
remaining lifetime has passed.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Callable

import kopf
from kubernetes import client

from .. import metrics
from ..constants import (
    ANNOTATION_ACCESS_TOKEN,
    KIND_SECRET,
    LABEL_CREDENTIALS_TYPE,
    LABEL_CREDENTIALS_VALUE,
    SECRET_ACCESS_TOKEN,
    SECRET_CLIENT_ID,
    SECRET_CLIENT_SECRET,
    SECRET_EXPIRY,
)
from ..logging import CONTROLLER_NAME, log_resource_event
from ..services.atlas.base import TokenProvider
from ..services.atlas.oauth import AtlasTokenProvider
from ..state.states import ReconcileResult
from ..utils.errors import ObjectNotFoundError, sanitize_exception
from ..utils.events import emit_token_failed, emit_token_refreshed
from ..utils.secrets import (
    annotate_secret,
    create_secret,
    decode_secret_data,
    read_secret,
    replace_secret_data,
)
from .shared import get_config, get_core_api

Logger = logging.Logger | logging.LoggerAdapter

#: Shortest wait between two looks at the same credential secret, in seconds
MIN_REQUEUE = 10.0

EXPIRY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# fromisoformat before 3.11 only accepts microsecond fractions
_FRACTION = re.compile(r"\.(\d+)")


def _microseconds(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_expiry(value: str) -> datetime | None:
    """Parse an RFC 3339 expiry; None when absent or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(_FRACTION.sub(_microseconds, value.replace("Z", "+00:00")))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_expiry(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(EXPIRY_FORMAT)


def has_service_account_credentials(data: dict[str, str]) -> bool:
    return bool(data.get(SECRET_CLIENT_ID)) and bool(data.get(SECRET_CLIENT_SECRET))


class ServiceAccountReconciler:
    """Keeps the access token of a service account credential secret fresh."""

    def __init__(
        self,
        core_api: client.CoreV1Api,
        token_provider: TokenProvider,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.core_api = core_api
        self.token_provider = token_provider
        self.clock = clock

    def reconcile(self, namespace: str, name: str, logger: Logger | None = None) -> ReconcileResult:
        """Refresh the token of ``namespace/name`` if it is due.

        Returns:
            When to look at the secret again, and the error if the refresh
            failed
        """
        log = logger or logging.getLogger(__name__)

        try:
            secret = read_secret(self.core_api, namespace, name)
        except ObjectNotFoundError:
            return ReconcileResult()
        except Exception as e:
            return ReconcileResult(requeue_after=MIN_REQUEUE, error=e)

        data = decode_secret_data(secret)
        if not has_service_account_credentials(data):
            return ReconcileResult()

        token_secret = None
        token_secret_name = (secret.metadata.annotations or {}).get(ANNOTATION_ACCESS_TOKEN)
        if token_secret_name:
            try:
                token_secret = read_secret(self.core_api, namespace, token_secret_name)
            except ObjectNotFoundError:
                token_secret = None
            except Exception as e:
                return ReconcileResult(requeue_after=MIN_REQUEUE, error=e)

        if token_secret is not None:
            expiry = parse_expiry(decode_secret_data(token_secret).get(SECRET_EXPIRY, ""))
            if expiry is not None:
                refresh_after = self._refresh_after(expiry)
                if refresh_after > MIN_REQUEUE:
                    return ReconcileResult(requeue_after=refresh_after)

        try:
            token, expiry = self.token_provider.fetch_token(data[SECRET_CLIENT_ID], data[SECRET_CLIENT_SECRET])
        except Exception as e:
            message = f"Failed to fetch access token: {sanitize_exception(e)}"
            self._log(log, secret, "token", "TokenRefreshFailed", message, level=logging.ERROR)
            metrics.token_refresh_total.labels(result="error").inc()
            emit_token_failed(_event_body(secret), message)
            return ReconcileResult(requeue_after=MIN_REQUEUE, error=e)

        token_data = {SECRET_ACCESS_TOKEN: token, SECRET_EXPIRY: format_expiry(expiry)}
        try:
            if token_secret is not None:
                replace_secret_data(self.core_api, token_secret, token_data)
                stored_name = token_secret.metadata.name
            else:
                stored_name = self._create_token_secret(secret, token_data)
        except Exception as e:
            metrics.token_refresh_total.labels(result="error").inc()
            return ReconcileResult(requeue_after=MIN_REQUEUE, error=e)

        metrics.token_refresh_total.labels(result="success").inc()
        self._log(log, secret, "token", "TokenRefreshed", f"Access token stored in secret {stored_name}")
        emit_token_refreshed(_event_body(secret), stored_name)

        return ReconcileResult(requeue_after=max(self._refresh_after(expiry), MIN_REQUEUE))

    def _refresh_after(self, expiry: datetime) -> float:
        remaining = (expiry - self.clock()).total_seconds()
        return remaining * 2 / 3

    def _create_token_secret(self, secret: client.V1Secret, token_data: dict[str, str]) -> str:
        meta = secret.metadata
        owner = client.V1OwnerReference(
            api_version="v1",
            kind=KIND_SECRET,
            name=meta.name,
            uid=meta.uid,
            controller=True,
        )
        created = create_secret(
            self.core_api,
            meta.namespace,
            token_data,
            generate_name=f"{meta.name}-token-",
            labels={LABEL_CREDENTIALS_TYPE: LABEL_CREDENTIALS_VALUE},
            owner_references=[owner],
        )
        token_secret_name = created.metadata.name
        annotate_secret(self.core_api, meta.namespace, meta.name, {ANNOTATION_ACCESS_TOKEN: token_secret_name})
        return token_secret_name

    def _log(
        self,
        log: Logger,
        secret: client.V1Secret,
        event: str,
        reason: str,
        message: str,
        level: int = logging.INFO,
    ) -> None:
        log_resource_event(
            log,
            controller=CONTROLLER_NAME,
            resource_kind=KIND_SECRET,
            resource_name=secret.metadata.name,
            namespace=secret.metadata.namespace,
            uid=secret.metadata.uid or "unknown",
            event=event,
            reason=reason,
            message=message,
            level=level,
        )


def _event_body(secret: client.V1Secret) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SECRET,
        "metadata": {
            "name": secret.metadata.name,
            "namespace": secret.metadata.namespace,
            "uid": secret.metadata.uid,
        },
    }


@lru_cache(maxsize=1)
def get_reconciler() -> ServiceAccountReconciler:
    """Get the service account token reconciler."""
    return ServiceAccountReconciler(get_core_api(), AtlasTokenProvider(get_config().atlas_domain))


def _is_service_account_secret(body: dict[str, Any], **_: Any) -> bool:
    # Secret data arrives base64 encoded; presence of both keys is enough here
    data = body.get("data") or {}
    return bool(data.get(SECRET_CLIENT_ID)) and bool(data.get(SECRET_CLIENT_SECRET))


@kopf.daemon("v1", "secrets", id="service-account-token", when=_is_service_account_secret, cancellation_timeout=5.0)
def service_account_token_daemon(
    stopped: kopf.DaemonStopped,
    name: str,
    namespace: str,
    logger: logging.Logger,
    **_: Any,
) -> None:
    """Refresh the access token of a service account secret for as long as it exists."""
    reconciler = get_reconciler()
    while not stopped:
        result = reconciler.reconcile(namespace, name, logger)
        if result.error is not None:
            logger.warning(f"Token refresh failed, retrying in {result.requeue_after}s: {sanitize_exception(result.error)}")
        if result.requeue_after is None:
            return
        stopped.wait(result.requeue_after)
