"""API layer for the asset register.

Contains:
- FastAPI router with endpoints
- Pydantic schemas for request/response validation
- Dependencies for the shared client, bearer auth, and role checks
"""

from .router import router
from .schemas import (
    AccountCreateRequest,
    AccountDTO,
    AnalyticsResponse,
    BatchCreateRequest,
    BatchDTO,
    BatchSummaryResponse,
    StationAssetsResponse,
    StationDTO,
    StationReportResponse,
    StationUpdateRequest,
)

__all__ = [
    "router",
    "StationDTO",
    "StationReportResponse",
    "StationUpdateRequest",
    "StationAssetsResponse",
    "BatchDTO",
    "BatchSummaryResponse",
    "BatchCreateRequest",
    "AccountDTO",
    "AccountCreateRequest",
    "AnalyticsResponse",
]
