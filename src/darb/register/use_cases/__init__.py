"""Use cases for the asset register.

Each use case encapsulates one piece of business logic and depends only on
domain ports, never on concrete adapters.
"""

from .analytics import GetAnalyticsUseCase
from .asset_views import GetBatchSummaryUseCase, GetStationAssetsUseCase, StationAssetsResult
from .directory_print import PrintDirectoryUseCase
from .manage_register import (
    AddBatchUseCase,
    CreateAccountUseCase,
    DeleteAccountUseCase,
    DeleteStationUseCase,
    UpdateStationUseCase,
)
from .station_report import GetStationReportUseCase

__all__ = [
    "GetStationReportUseCase",
    "PrintDirectoryUseCase",
    "GetBatchSummaryUseCase",
    "GetStationAssetsUseCase",
    "StationAssetsResult",
    "GetAnalyticsUseCase",
    "UpdateStationUseCase",
    "DeleteStationUseCase",
    "AddBatchUseCase",
    "CreateAccountUseCase",
    "DeleteAccountUseCase",
]
