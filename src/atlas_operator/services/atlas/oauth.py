"""OAuth client-credentials token provider for Atlas service accounts."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from urllib.parse import urljoin

import requests

from ... import metrics
from ...utils.errors import TokenFetchError
from ...utils.rate_limit import rate_limit_atlas

TOKEN_PATH = "api/oauth/token"


class AtlasTokenProvider:
    """Fetches access tokens from the Atlas OAuth endpoint."""

    def __init__(self, domain: str, timeout: float = 30.0, session: requests.Session | None = None):
        self.token_url = urljoin(domain if domain.endswith("/") else domain + "/", TOKEN_PATH)
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_token(self, client_id: str, client_secret: str) -> tuple[str, datetime]:
        """Exchange service account credentials for an access token.

        Returns:
            The access token and its absolute expiry time (UTC)

        Raises:
            TokenFetchError: If the endpoint is unreachable or rejects the request
        """
        start_time = time.time()
        try:
            response = rate_limit_atlas(self.session.post)(
                self.token_url,
                auth=(client_id, client_secret),
                data={"grant_type": "client_credentials"},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            metrics.api_call_total.labels(api_type="atlas", operation="fetch_token", result="error").inc()
            raise TokenFetchError(f"token request failed: {e}") from e
        finally:
            metrics.api_call_duration_seconds.labels(api_type="atlas", operation="fetch_token").observe(
                time.time() - start_time
            )

        if not response.ok:
            metrics.api_call_total.labels(api_type="atlas", operation="fetch_token", result="error").inc()
            raise TokenFetchError(f"token endpoint returned {response.status_code}")

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise TokenFetchError("token endpoint returned no access_token")

        metrics.api_call_total.labels(api_type="atlas", operation="fetch_token", result="success").inc()
        expires_in = int(payload.get("expires_in", 3600))
        return token, datetime.now(timezone.utc) + timedelta(seconds=expires_in)
