"""Reachability probe for recommended YouTube links."""

from __future__ import annotations

import logging
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import urlopen

logger = logging.getLogger(__name__)

OEMBED_URL = "https://www.youtube.com/oembed"


class YouTubeOEmbedProbe:
    """Treat a link as playable when YouTube's oEmbed endpoint answers 2xx."""

    def __init__(self, timeout_seconds: float = 10):
        self.timeout_seconds = timeout_seconds

    def probe(self, url: str) -> bool:
        if not url:
            return False
        request_url = f"{OEMBED_URL}?format=json&url={quote(url, safe='')}"
        try:
            with urlopen(request_url, timeout=self.timeout_seconds) as response:
                status = getattr(response, "status", 200)
        except (URLError, TimeoutError, OSError, ValueError) as exc:
            logger.info("Link probe failed for %s: %s", url, exc)
            return False
        return 200 <= status < 300
