"""Operator configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from . import __version__
from .constants import ATLAS_GOV_DOMAIN

DEFAULT_ATLAS_DOMAIN = "https://cloud.mongodb.com/"
DEFAULT_INDEPENDENT_SYNC_PERIOD_MINUTES = 15
MINIMUM_INDEPENDENT_SYNC_PERIOD_MINUTES = 5
DEFAULT_RETRY_SECONDS = 10.0


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class OperatorConfig:
    """Process-wide settings shared by every controller instance."""

    atlas_domain: str = DEFAULT_ATLAS_DOMAIN
    global_secret_namespace: str = "default"
    global_secret_name: str = "atlas-operator-api-key"
    object_deletion_protection: bool = True
    independent_sync_period: float = DEFAULT_INDEPENDENT_SYNC_PERIOD_MINUTES * 60.0
    default_retry: float = DEFAULT_RETRY_SECONDS
    max_concurrent_reconciles: int = 4
    metrics_port: int = 8080
    operator_version: str = __version__

    @property
    def is_gov(self) -> bool:
        """Whether the configured Atlas domain is the government cloud."""
        return ATLAS_GOV_DOMAIN in self.atlas_domain

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Build the configuration from environment variables.

        The independent sync period is clamped to a five minute minimum.
        """
        sync_minutes = int(
            os.getenv("INDEPENDENT_SYNC_PERIOD_MINUTES", str(DEFAULT_INDEPENDENT_SYNC_PERIOD_MINUTES))
        )
        sync_minutes = max(sync_minutes, MINIMUM_INDEPENDENT_SYNC_PERIOD_MINUTES)

        return cls(
            atlas_domain=os.getenv("ATLAS_DOMAIN", DEFAULT_ATLAS_DOMAIN),
            global_secret_namespace=os.getenv("GLOBAL_SECRET_NAMESPACE", os.getenv("OPERATOR_NAMESPACE", "default")),
            global_secret_name=os.getenv("GLOBAL_SECRET_NAME", "atlas-operator-api-key"),
            object_deletion_protection=_env_bool("OBJECT_DELETION_PROTECTION", True),
            independent_sync_period=sync_minutes * 60.0,
            default_retry=float(os.getenv("DEFAULT_RETRY_SECONDS", str(DEFAULT_RETRY_SECONDS))),
            max_concurrent_reconciles=int(os.getenv("MAX_CONCURRENT_RECONCILES", "4")),
            metrics_port=int(os.getenv("METRICS_PORT", "8080")),
            operator_version=os.getenv("OPERATOR_VERSION", __version__),
        )
