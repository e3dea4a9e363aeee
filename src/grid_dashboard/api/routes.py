"""API routes for the grid performance dashboard."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import PurePath
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import Response

from grid_dashboard.api.dependencies import (
    check_upload_password,
    get_dataset_store,
    get_settings_dependency,
    validate_upload_password,
)
from grid_dashboard.configuration.settings import Settings
from grid_dashboard.core.dataset_store import DatasetStore
from grid_dashboard.core.excel_parser import SpreadsheetDecoder
from grid_dashboard.core.indicators import summarize
from grid_dashboard.core.pdf_report import build_report, report_filename
from grid_dashboard.models.api_models import (
    PasswordCheckRequest,
    PasswordCheckResponse,
    UploadResponse,
)
from grid_dashboard.models.domain_models import DatasetSnapshot, KPISummary, WeeklyRecord
from grid_dashboard.utils.exceptions import (
    DatasetPersistError,
    ReportExportError,
    SpreadsheetFormatError,
    WorkbookReadError,
)

logger = structlog.get_logger()

router = APIRouter()

# Thread pool for synchronous workbook decoding and PDF rendering
executor = ThreadPoolExecutor(max_workers=4)

decoder = SpreadsheetDecoder()


def _require_snapshot(store: DatasetStore) -> DatasetSnapshot:
    snapshot = store.current()
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No dataset loaded",
        )
    return snapshot


def _require_records(store: DatasetStore) -> DatasetSnapshot:
    """Current snapshot, which must hold at least one week."""
    snapshot = _require_snapshot(store)
    if not snapshot.records:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Current dataset has no weeks",
        )
    return snapshot


@router.post(
    "/auth/verify-password",
    response_model=PasswordCheckResponse,
    summary="Verify upload password",
)
async def verify_password(
    body: PasswordCheckRequest,
    settings: Settings = Depends(get_settings_dependency),
) -> PasswordCheckResponse:
    verified = check_upload_password(body.password, settings)
    logger.info("upload_password_checked", verified=verified)
    return PasswordCheckResponse(verified=verified)


@router.post(
    "/dataset/upload",
    response_model=UploadResponse,
    summary="Replace the current dataset",
    description="Accept a weekly performance workbook and make it the current dataset",
)
async def upload_dataset(
    file: UploadFile = File(..., description="Weekly performance workbook (.xlsx or .xls)"),
    password: str = Depends(validate_upload_password),
    settings: Settings = Depends(get_settings_dependency),
    store: DatasetStore = Depends(get_dataset_store),
) -> UploadResponse:
    """Decode an uploaded workbook and replace the current dataset with it.

    Args:
        file: Uploaded workbook
        password: Validated upload password
        settings: Application settings
        store: Dataset store

    Returns:
        Number of weeks loaded plus any decoding diagnostics
    """
    logger.info(
        "dataset_upload_received",
        filename=file.filename,
        content_type=file.content_type,
    )

    # 1. Validate file type
    suffix = PurePath(file.filename or "").suffix.lower()
    allowed = [ext.lower() for ext in settings.dataset.allowed_extensions]
    if suffix not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(allowed)} files are allowed.",
        )

    # 2. Check file size
    file.file.seek(0, 2)
    file_size = file.file.tell()
    file.file.seek(0)

    max_size = settings.dataset.max_upload_bytes
    if file_size > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size ({file_size} bytes) exceeds maximum allowed size ({max_size} bytes)",
        )

    # 3. Decode (openpyxl/xlrd are synchronous)
    content = await file.read()
    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(executor, decoder.decode_with_diagnostics, content)
    except (SpreadsheetFormatError, WorkbookReadError) as e:
        logger.error(
            "dataset_upload_rejected",
            filename=file.filename,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Upload failed, check file format: {e}",
        )

    # 4. Replace the current dataset
    try:
        snapshot = store.replace(result.records, file.filename or "upload", result.diagnostics)
    except DatasetPersistError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to store dataset: {e}",
        )

    return UploadResponse(
        weeks=len(snapshot.records),
        source_name=snapshot.source_name,
        diagnostics=result.diagnostics,
        warnings=result.warnings,
    )


@router.get("/dataset", response_model=DatasetSnapshot, summary="Current dataset")
async def get_dataset(store: DatasetStore = Depends(get_dataset_store)) -> DatasetSnapshot:
    return _require_snapshot(store)


@router.get("/dataset/latest", response_model=WeeklyRecord, summary="Most recent week")
async def get_latest_week(store: DatasetStore = Depends(get_dataset_store)) -> WeeklyRecord:
    return _require_records(store).records[-1]


@router.get(
    "/kpis",
    response_model=Optional[KPISummary],
    summary="Top-line indicators",
    description="KPIs for the latest week; null when no dataset is loaded",
)
async def get_kpis(store: DatasetStore = Depends(get_dataset_store)) -> Optional[KPISummary]:
    snapshot = store.current()
    return summarize(snapshot.records if snapshot is not None else [])


@router.get(
    "/report.pdf",
    response_class=Response,
    summary="Export PDF report",
    responses={200: {"content": {"application/pdf": {}}}},
)
async def export_report(store: DatasetStore = Depends(get_dataset_store)) -> Response:
    snapshot = _require_records(store)
    generated_at = datetime.now()

    loop = asyncio.get_running_loop()
    try:
        content = await loop.run_in_executor(
            executor,
            build_report,
            snapshot.records,
            summarize(snapshot.records),
            generated_at,
        )
    except ReportExportError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )

    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{report_filename(generated_at)}"'
        },
    )
