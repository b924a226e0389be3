"""
Image fetching

Downloads source bytes for conversion. Lives outside the conversion core:
the core only ever sees bytes.
"""

from typing import Optional

import requests

from smartwebp.core.errors import FetchError
from smartwebp.core.logger import get_logger
from smartwebp.core.settings import get_conversion_config

logger = get_logger(__name__)


class ImageFetcher:
    """HTTP fetcher with a bounded timeout and no retries"""

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            timeout: Request timeout in seconds (project config when omitted)
            session: Shared requests session; a fresh one is used when omitted
        """
        self.timeout = timeout if timeout is not None else get_conversion_config().fetch_timeout
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        """
        Download image bytes

        Args:
            url: http(s) locator of the source image

        Returns:
            Response body

        Raises:
            FetchError: if the source is unreachable or responds with a non-success status
        """
        if not url:
            raise FetchError("Missing image URL")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch image from {url}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Failed to fetch image from {url}: HTTP {response.status_code}"
            )

        content = response.content
        logger.debug(f"Fetched {url}: {len(content) / 1024:.1f}KB")
        return content
