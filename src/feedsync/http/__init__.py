"""FeedSync HTTP utilities.

Example:
    >>> from feedsync.http import HttpClient
    >>>
    >>> async with HttpClient(max_retries=2) as client:
    ...     data = await client.get_bytes("https://example.com/rss.xml")
"""

from feedsync.http.client import HttpClient, HttpClientError

__all__ = [
    "HttpClient",
    "HttpClientError",
]
