"""Tests for loading the dataset at startup."""

import asyncio

import httpx
import pytest

from conftest import HEADER, build_workbook, weekly_row
from grid_dashboard.clients.http_client import DatasetFetcher
from grid_dashboard.configuration.settings import get_settings
from grid_dashboard.core.dataset_loader import load_initial_dataset
from grid_dashboard.core.dataset_store import DatasetStore
from grid_dashboard.models.domain_models import WeeklyRecord
from grid_dashboard.utils.exceptions import (
    DatasetFetchError,
    DatasetPersistError,
    SpreadsheetFormatError,
)


def _settings(initial_source):
    settings = get_settings()
    dataset = settings.dataset.model_copy(update={"initial_source": initial_source})
    return settings.model_copy(update={"dataset": dataset})


def test_loads_workbook_from_path(tmp_path):
    path = tmp_path / "GRIDCo_WEEKLY.xlsx"
    path.write_bytes(build_workbook([HEADER, weekly_row("Jan", "2025-01-07")]))
    store = DatasetStore()

    snapshot = asyncio.run(load_initial_dataset(_settings(str(path)), store))

    assert snapshot.source_name == "GRIDCo_WEEKLY.xlsx"
    assert len(snapshot.records) == 1
    assert store.current() is snapshot


def test_loads_workbook_from_url():
    content = build_workbook([HEADER, weekly_row("Jan", "2025-01-07"), weekly_row("Jan", "2025-01-14")])
    settings = _settings("https://data.example.org/weekly/GRIDCo_WEEKLY.xlsx")
    fetcher = DatasetFetcher(
        settings.fetch,
        transport=httpx.MockTransport(lambda request: httpx.Response(200, content=content)),
    )
    store = DatasetStore()

    snapshot = asyncio.run(load_initial_dataset(settings, store, fetcher=fetcher))

    assert snapshot.source_name == "GRIDCo_WEEKLY.xlsx"
    assert len(snapshot.records) == 2


def test_saved_snapshot_wins_over_initial_source(tmp_path):
    snapshot_path = tmp_path / "current.json"
    DatasetStore(snapshot_path).replace(
        [WeeklyRecord(month="Aug", date="2025-08-19")], "uploaded.xlsx"
    )
    store = DatasetStore(snapshot_path)

    snapshot = asyncio.run(load_initial_dataset(_settings(str(tmp_path / "absent.xlsx")), store))

    assert snapshot.source_name == "uploaded.xlsx"


def test_nothing_configured_leaves_store_empty():
    store = DatasetStore()
    assert asyncio.run(load_initial_dataset(_settings(None), store)) is None
    assert store.current() is None


def test_missing_file_raises_fetch_error(tmp_path):
    with pytest.raises(DatasetFetchError):
        asyncio.run(load_initial_dataset(_settings(str(tmp_path / "absent.xlsx")), DatasetStore()))


def test_headerless_workbook_is_not_loaded(tmp_path):
    path = tmp_path / "bad.xlsx"
    path.write_bytes(build_workbook([["no", "header", "here"]]))
    store = DatasetStore()

    with pytest.raises(SpreadsheetFormatError):
        asyncio.run(load_initial_dataset(_settings(str(path)), store))
    assert store.current() is None


def test_unwritable_snapshot_fails_initial_load(tmp_path):
    path = tmp_path / "GRIDCo_WEEKLY.xlsx"
    path.write_bytes(build_workbook([HEADER, weekly_row("Jan", "2025-01-07")]))
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = DatasetStore(blocker / "current.json")

    with pytest.raises(DatasetPersistError):
        asyncio.run(load_initial_dataset(_settings(str(path)), store))
    assert store.current() is None
