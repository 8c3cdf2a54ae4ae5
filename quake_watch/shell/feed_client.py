"""USGS Feed Client - Imperative Shell.

This module handles HTTP communication with the USGS Earthquake API.
All I/O is contained here; parsing and query building are in the core module.
"""

import logging

import requests

from quake_watch.core.config import USGS_API_BASE
from quake_watch.core.earthquake import FeedParseError, parse_earthquakes
from quake_watch.core.errors import FetchError, FetchErrorKind, FetchResult
from quake_watch.core.query import FeedQuery, build_query_params


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30


class FeedClient:
    """Client for fetching earthquake records from the USGS API.

    This is part of the imperative shell - it handles HTTP I/O. It never
    raises for network or parse problems; callers get a FetchResult.
    """

    def __init__(
        self,
        base_url: str = USGS_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize feed client.

        Args:
            base_url: USGS API base URL
            timeout: Request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, query: FeedQuery) -> FetchResult:
        """Fetch and parse earthquake records for a query.

        This method performs HTTP I/O.

        Args:
            query: Time window and bounding box to fetch

        Returns:
            FetchResult with records in feed order, or an error
        """
        params = build_query_params(query)

        logger.info(
            "Fetching earthquakes from USGS",
            extra={"params": params},
        )

        try:
            response = self.session.get(
                self.base_url,
                params=params,
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error("USGS request timed out")
            return FetchResult(error=FetchError(
                kind=FetchErrorKind.NETWORK,
                detail="Request timed out",
            ))
        except requests.RequestException as e:
            logger.error("USGS request failed: %s", str(e))
            return FetchResult(error=FetchError(
                kind=FetchErrorKind.NETWORK,
                detail=str(e),
            ))

        if not 200 <= response.status_code < 300:
            logger.warning(
                "USGS returned non-2xx: %d - %s",
                response.status_code,
                response.text[:200],
            )
            return FetchResult(error=FetchError(
                kind=FetchErrorKind.NETWORK,
                detail=f"HTTP {response.status_code}",
                status_code=response.status_code,
            ))

        try:
            data = response.json()
            records = parse_earthquakes(data)
        except ValueError as e:
            # FeedParseError and JSON decode errors are both ValueErrors
            logger.error("Failed to parse USGS response: %s", str(e))
            return FetchResult(error=FetchError(
                kind=FetchErrorKind.PARSE,
                detail=str(e) if isinstance(e, FeedParseError) else f"Invalid JSON: {e}",
                status_code=response.status_code,
            ))

        logger.info("Fetched %d earthquakes from USGS", len(records))

        return FetchResult(records=tuple(records))

    def close(self) -> None:
        self.session.close()
