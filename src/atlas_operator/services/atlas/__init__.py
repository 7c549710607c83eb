"""Atlas Admin API access."""

from .client import AtlasClient
from .oauth import AtlasTokenProvider

__all__ = ["AtlasClient", "AtlasTokenProvider"]
