"""Startup loading of the current dataset."""

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import structlog

from grid_dashboard.clients.http_client import DatasetFetcher
from grid_dashboard.configuration.settings import Settings
from grid_dashboard.core.dataset_store import DatasetStore
from grid_dashboard.core.excel_parser import SpreadsheetDecoder
from grid_dashboard.models.domain_models import DatasetSnapshot
from grid_dashboard.utils.exceptions import DatasetFetchError

logger = structlog.get_logger()


async def read_source(source: str, fetcher: DatasetFetcher) -> tuple[str, bytes]:
    """Read workbook bytes from an http(s) URL or a local path.

    Returns:
        Source display name and raw bytes

    Raises:
        DatasetFetchError: If the source cannot be read
    """
    parsed = urlparse(source)
    if parsed.scheme in ("http", "https"):
        content = await fetcher.fetch_workbook(source)
        return Path(parsed.path).name or source, content

    path = Path(source)
    try:
        return path.name, path.read_bytes()
    except OSError as e:
        raise DatasetFetchError(f"Failed to read dataset file {path}: {e}") from e


async def load_initial_dataset(
    settings: Settings,
    store: DatasetStore,
    decoder: Optional[SpreadsheetDecoder] = None,
    fetcher: Optional[DatasetFetcher] = None,
) -> Optional[DatasetSnapshot]:
    """Populate the store at startup.

    A saved snapshot wins over the configured initial source.

    Raises:
        DatasetFetchError: If the initial source cannot be read
        SpreadsheetFormatError: If the initial workbook has no header row
        WorkbookReadError: If the initial workbook cannot be opened
        DatasetPersistError: If the loaded dataset cannot be snapshotted
    """
    snapshot = store.load()
    if snapshot is not None:
        return snapshot

    source = settings.dataset.initial_source
    if not source:
        logger.info("no_initial_dataset_configured")
        return None

    source_name, content = await read_source(source, fetcher or DatasetFetcher(settings.fetch))
    result = (decoder or SpreadsheetDecoder()).decode_with_diagnostics(content)

    return store.replace(result.records, source_name, result.diagnostics)
