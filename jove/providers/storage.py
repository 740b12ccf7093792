import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from jove.config import get_settings
from jove.providers.base import AssetProbe

logger = logging.getLogger(__name__)


class HttpAssetProbe(AssetProbe):
    """
    Existence probe for the public customization-item bucket.

    Issues HEAD requests only. This is an out-of-band check (email building,
    asset audits); the image resolver never calls it.
    """

    provider_name = "http"

    def __init__(self, timeout_seconds: float | None = None, session: requests.Session | None = None):
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else get_settings().asset_probe_timeout
        )
        if session is None:
            session = requests.Session()
            retry = Retry(
                total=2,
                connect=2,
                read=2,
                backoff_factor=0.5,
                status_forcelist=[429, 500, 502, 503, 504],
                allowed_methods=["HEAD"],
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session

    def exists(self, url: str) -> bool:
        try:
            response = self.session.head(url, timeout=self.timeout_seconds, allow_redirects=True)
        except requests.RequestException as exc:
            logger.info("Asset probe failed for %s: %s", url, exc)
            return False
        return response.ok


class StaticAssetProbe(AssetProbe):
    """Probe backed by a known set of URLs, for audits against a bucket listing."""

    provider_name = "static"

    def __init__(self, urls: set[str] | frozenset[str]):
        self.urls = frozenset(urls)

    def exists(self, url: str) -> bool:
        return url in self.urls
