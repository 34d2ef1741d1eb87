"""HTTP session factory with honest User-Agent and connection retries.

Creates a requests.Session pre-configured with:
- Honest User-Agent header (not browser impersonation)
- Retry on connection failures with exponential backoff
- Optionally, retry on transient HTTP errors (429, 5xx)

Dataset downloads let urllib3 retry status errors. The metadata client
handles 429/5xx itself (one retry after a fixed pause) and so asks for
connection retries only.
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

TRANSIENT_STATUSES = (429, 500, 502, 503, 504)


def create_session(
    user_agent: str,
    retry_count: int = 3,
    retry_statuses: bool = True,
) -> requests.Session:
    """Create an HTTP session with retry strategy and honest User-Agent.

    Uses urllib3's Retry to automatically retry failed requests with
    exponential backoff (1s, 2s, 4s). Only retries safe GET requests.

    Args:
        user_agent: Value for the User-Agent header.
        retry_count: Maximum retries per request.
        retry_statuses: Also retry 429 and 5xx responses.

    Returns:
        A requests.Session ready to use for all HTTP calls.
    """
    session = requests.Session()
    session.headers["User-Agent"] = user_agent

    retry_strategy = Retry(
        total=retry_count,
        status=retry_count if retry_statuses else 0,
        backoff_factor=1,
        status_forcelist=list(TRANSIENT_STATUSES) if retry_statuses else [],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session
