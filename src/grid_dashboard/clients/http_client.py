"""HTTP client for downloading dataset workbooks."""

from typing import Optional

import httpx
import structlog

from grid_dashboard.configuration.settings import FetchConfig
from grid_dashboard.utils.exceptions import DatasetFetchError
from grid_dashboard.utils.retry import retry_with_backoff

logger = structlog.get_logger()


class DatasetFetcher:
    """Downloads workbook bytes from a URL with retry logic."""

    def __init__(
        self,
        config: FetchConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize fetcher.

        Args:
            config: Fetch configuration
            transport: Optional httpx transport, used to stub the network in tests
        """
        self.config = config
        self.transport = transport
        logger.info(
            "dataset_fetcher_initialized",
            timeout=config.timeout,
            max_attempts=config.retry.max_attempts,
        )

    async def fetch_workbook(self, url: str) -> bytes:
        """Download a workbook, retrying transient failures.

        Args:
            url: Workbook location

        Returns:
            Raw workbook bytes

        Raises:
            DatasetFetchError: If the download fails after all retries
        """
        logger.info("dataset_fetch_started", url=url)

        try:
            content = await retry_with_backoff(
                func=lambda: self._get(url),
                max_attempts=self.config.retry.max_attempts,
                backoff_factor=self.config.retry.backoff_factor,
                max_delay=self.config.retry.max_delay,
                exceptions=(httpx.HTTPError,),
            )
        except Exception as e:
            logger.error(
                "dataset_fetch_failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DatasetFetchError(f"Failed to download dataset from {url}: {e}") from e

        logger.info("dataset_fetch_completed", url=url, size_bytes=len(content))
        return content

    async def _get(self, url: str) -> bytes:
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.get(url, timeout=self.config.timeout, follow_redirects=True)
            response.raise_for_status()

            logger.debug(
                "http_response_received",
                status_code=response.status_code,
                content_type=response.headers.get("content-type"),
            )

            return response.content
