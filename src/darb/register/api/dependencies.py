"""FastAPI dependency injection for the register API.

This module provides dependency injection functions that create
and return adapter instances for use in API endpoints.

Lifecycle Management:
- Register client: Initialized at startup, shared across requests
- Renderer and exporter: Stateless, created once at import
- The client is closed at application shutdown

Security:
- Every endpoint except /health requires ``Authorization: Bearer <token>``
- The token is forwarded to the backend, which resolves the caller via
  /api/me; the caller's role then gates each endpoint
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...api.client import RegisterClient
from ...api.error_sanitizer import sanitize_error_message
from ...api.exceptions import (
    CircuitOpenError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    RegisterError,
    UnauthorizedError,
    ValidationError,
)
from ..adapters import BackendRegisterRepository, HtmlReportRenderer, StationReportExporter
from ..domain.entities import CurrentUser
from ..domain.ports import IRegisterRepository, IReportExporter, IReportRenderer

logger = logging.getLogger(__name__)

# ========== Bearer Authentication ==========

bearer_scheme = HTTPBearer(auto_error=False)


async def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[str]:
    """Bearer token from the Authorization header, if any."""
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


# ========== Global State ==========

# Global register client (initialized on startup)
_register_client: Optional[RegisterClient] = None

_renderer = HtmlReportRenderer()
_exporter = StationReportExporter()


async def init_register_client():
    """Initialize the shared register client.

    Should be called on application startup. The client carries no token
    manager: every request forwards its caller's own token.
    """
    global _register_client

    _register_client = RegisterClient()
    await _register_client.__aenter__()
    logger.info(f"Register client initialized for {_register_client.base_url}")


async def close_register_client():
    """Close the register client.

    Should be called on application shutdown.
    """
    global _register_client

    if _register_client:
        await _register_client.__aexit__(None, None, None)
        _register_client = None

    logger.info("Register client closed")


def get_register_client() -> RegisterClient:
    """Get the shared register client."""
    if _register_client is None:
        raise RuntimeError(
            "Register client not initialized. Call init_register_client() first."
        )
    return _register_client


# ========== Dependency Functions ==========


def get_repository(token: Optional[str] = Depends(get_token)) -> IRegisterRepository:
    """Get a repository acting on behalf of the caller.

    Uses the shared client initialized at startup.
    """
    return BackendRegisterRepository(get_register_client(), token=token)


def get_renderer() -> IReportRenderer:
    """Get the print HTML renderer."""
    return _renderer


def get_exporter() -> IReportExporter:
    """Get the CSV/Excel exporter."""
    return _exporter


# ========== Permissions ==========


async def get_current_user(
    repository: IRegisterRepository = Depends(get_repository),
) -> CurrentUser:
    """Resolve the caller through the backend.

    Raises:
        HTTPException: 401 if the caller is not authenticated, 502/503 if
            the backend cannot be reached
    """
    try:
        user = await repository.get_current_user()
    except RegisterError as e:
        logger.error(f"Could not resolve current user: {e.code}")
        raise http_error_for(e, "Authentication check failed")

    if not user.authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_viewer(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.can_view:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


async def require_assigner(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Admins and assigning users only."""
    if not user.can_assign:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: assigning permission required",
        )
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: admin role required",
        )
    return user


# ========== Error Mapping ==========


def http_error_for(error: RegisterError, context: Optional[str] = None) -> HTTPException:
    """Map a register client error to the HTTPException returned to the caller.

    401 and 403 pass through, 404 stays 404, backend validation failures
    become 400, an open circuit or unreachable backend is 503, and any other
    backend failure is 502. Messages are always sanitized.
    """
    if isinstance(error, UnauthorizedError):
        status_code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(error, ForbiddenError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(error, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, (CircuitOpenError, NetworkError)):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_502_BAD_GATEWAY

    return HTTPException(
        status_code=status_code,
        detail=sanitize_error_message(error.message, context),
    )
