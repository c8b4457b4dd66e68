"""
Feed API Client for fanbox creator post listings

This module issues the paginated requests against the creator post listing
endpoint. One call fetches one page; the cursor for the next page comes out of
the decoded response (see feed_decoder).
"""

import logging
from typing import Optional

import requests

from .errors import TransportError


class FeedClient:
    """
    Client for the fanbox post listing API.

    The API rejects requests that do not carry an Origin header matching the
    creator's own subdomain, so every request sets it.
    """

    API_BASE_URL = "https://api.fanbox.cc"
    LIST_ENDPOINT = "/post.listCreator"
    CREATOR_ORIGIN = "https://{creator}.fanbox.cc"
    POST_URL = "https://{creator}.fanbox.cc/posts/{post_id}"

    def __init__(self, creator_id: str, page_size: int = 10, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize the feed client.

        Args:
            creator_id: The creator's fanbox identifier (subdomain)
            page_size: Number of posts requested per page
            timeout: Per-request timeout in seconds
            session: Optional preconfigured session (shared with media downloads)
        """
        self.creator_id = creator_id
        self.page_size = page_size
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Postvault/1.0 (Creator Feed Archiver)',
            'Accept': 'application/json, text/plain, */*',
        })

    @property
    def origin(self) -> str:
        return self.CREATOR_ORIGIN.format(creator=self.creator_id)

    def seed_url(self) -> str:
        """Return the URL of the first (newest) feed page."""
        return (f"{self.API_BASE_URL}{self.LIST_ENDPOINT}"
                f"?creatorId={self.creator_id}&limit={self.page_size}")

    def post_url(self, post_id: str) -> str:
        """Return the public URL of a post, used by the live render mode."""
        return self.POST_URL.format(creator=self.creator_id, post_id=post_id)

    def fetch_page(self, url: str) -> str:
        """
        Fetch one feed page and return the raw response body.

        Args:
            url: Seed URL or the cursor returned with the previous page

        Returns:
            The response body as text

        Raises:
            TransportError: On connection failure, timeout, non-2xx status or
                an undecodable body. The crawl cannot resume mid-page, so the
                caller treats this as fatal.
        """
        try:
            response = self.session.get(url, headers={'Origin': self.origin}, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"Feed request failed: {url} ({e})")
            raise TransportError(url, str(e)) from e

        self.logger.info(f"Url: {url} Status: {response.status_code}")

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise TransportError(url, f"HTTP {response.status_code}", response.status_code) from e

        try:
            return response.content.decode(response.encoding or 'utf-8')
        except (UnicodeDecodeError, LookupError) as e:
            raise TransportError(url, f"undecodable body: {e}", response.status_code) from e

    def close(self):
        """Close the HTTP session."""
        self.session.close()
