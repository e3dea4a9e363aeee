"""API dependencies for upload authorization, settings and the dataset store."""

import secrets
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from grid_dashboard.configuration.settings import Settings, get_settings
from grid_dashboard.core.dataset_store import DatasetStore

logger = structlog.get_logger()

# Shared upload secret sent with re-upload requests
upload_password_header = APIKeyHeader(name="X-Upload-Password", auto_error=False)


def check_upload_password(candidate: Optional[str], settings: Settings) -> bool:
    """Compare a password with the configured upload secret.

    Raises:
        HTTPException: 500 if no upload secret is configured
    """
    expected = settings.api.upload_password
    if not expected:
        logger.error("upload_password_not_configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Password system not configured",
        )
    if candidate is None:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def get_settings_dependency() -> Settings:
    """Get settings dependency for FastAPI.

    Returns:
        Application settings
    """
    return get_settings()


async def validate_upload_password(
    password: Optional[str] = Security(upload_password_header),
    settings: Settings = Depends(get_settings_dependency),
) -> str:
    """Validate the upload password header.

    Args:
        password: Password from request header
        settings: Application settings

    Returns:
        Validated password

    Raises:
        HTTPException: If the password is missing or wrong (401 Unauthorized)
    """
    if not check_upload_password(password, settings):
        logger.warning("invalid_upload_password_attempt", provided=password is not None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid upload password",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    logger.debug("upload_password_validated")
    return password  # type: ignore[return-value]


def get_dataset_store(request: Request) -> DatasetStore:
    """Get the application-wide dataset store."""
    return request.app.state.dataset_store  # type: ignore[no-any-return]
