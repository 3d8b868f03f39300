"""HTTP session factory with automatic retries and exponential backoff.

Creates a requests.Session pre-configured with:
- Honest User-Agent header
- The TMDb api_key sent as a default query parameter
- Retry on transient HTTP errors (429, 5xx) with exponential backoff
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from episode_heatmap.config import TMDBConfig


def create_session(config: TMDBConfig) -> requests.Session:
    """Create an HTTP session with retry strategy and API key.

    Uses urllib3's Retry to retry failed GET requests with exponential
    backoff (1s, 2s, 4s) on rate limiting and transient server errors.

    Args:
        config: TMDb configuration with api_key, user_agent and retry_count.

    Returns:
        A requests.Session ready to use for all TMDb calls.
    """
    session = requests.Session()
    session.headers["User-Agent"] = config.user_agent
    session.headers["Accept"] = "application/json"
    if config.api_key:
        session.params = {"api_key": config.api_key}

    retry_strategy = Retry(
        total=config.retry_count,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session
