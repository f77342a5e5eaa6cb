from __future__ import annotations

import os
from typing import Optional

import requests

from ..errors import PublishError, PublishForbidden, PublishRateLimited, ValidationError
from ..utils.logging import get_logger

logger = get_logger("fc.output.x")

DEFAULT_API_BASE = "https://api.twitter.com/2"
DRY_RUN_POST_ID = "dry-run"


class XClient:
    """Post text updates through the X (Twitter) v2 API.

    Authenticates with an OAuth 2.0 user-context access token that carries
    the ``tweet.write`` scope. Failures are raised as typed publish errors
    and never retried here; the scheduler decides what happens next.
    """

    def __init__(
        self,
        *,
        token: Optional[str] = None,
        api_base: Optional[str] = None,
        dry_run: bool = False,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.token = token or os.environ.get("X_ACCESS_TOKEN") or os.environ.get("TWITTER_ACCESS_TOKEN")
        if not self.token and not dry_run:
            raise ValidationError("X_ACCESS_TOKEN/TWITTER_ACCESS_TOKEN not set and dry_run=False")
        self.api_base = (api_base or os.environ.get("X_API_BASE", DEFAULT_API_BASE)).rstrip("/")
        self.dry_run = dry_run
        self.timeout = timeout
        self._http = session or requests.Session()

    def publish(self, text: str) -> str:
        """Create a post and return its id."""
        if self.dry_run:
            logger.info("[DRY-RUN] Would post (%d chars): %s", len(text), text.splitlines()[0] if text else "")
            return DRY_RUN_POST_ID

        try:
            resp = self._http.post(
                f"{self.api_base}/tweets",
                json={"text": text},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PublishError(f"Transport error while posting: {exc}") from exc

        if resp.status_code == 429:
            raise PublishRateLimited("X API rate limit reached", status=429)
        if resp.status_code in (401, 403):
            raise PublishForbidden(
                f"X API refused the post ({resp.status_code}); check app permissions and token scopes",
                status=resp.status_code,
            )
        if resp.status_code >= 400:
            raise PublishError(f"X API error {resp.status_code}: {resp.text[:200]}", status=resp.status_code)

        post_id = str((resp.json().get("data") or {}).get("id") or "")
        if not post_id:
            raise PublishError("X API response did not include a post id", status=resp.status_code)
        logger.info("Created post %s", post_id)
        return post_id
