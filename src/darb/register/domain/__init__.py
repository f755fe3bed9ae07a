"""Domain layer for the asset register.

Contains:
- Entities: Register records, aggregated report structures, write payloads
- Aggregation: The station report grouping
- Views and analytics: Batch valuation, station scoping, dashboard metrics
- Ports: Interface definitions for infrastructure adapters
"""

from .aggregation import aggregate_for_station, coerce_identifier, flatten_report_rows
from .analytics import ChartEntry, DashboardMetrics, compute_dashboard, group_small_items
from .entities import (
    Account,
    AccountDraft,
    AggregatedAsset,
    AggregatedBatch,
    Asset,
    Assignment,
    Batch,
    BatchAllocation,
    BatchDraft,
    CurrentUser,
    Department,
    Employee,
    Item,
    ReportRow,
    Role,
    Station,
    StationAggregate,
    StationReport,
    StationUpdate,
)
from .ports import IRegisterRepository, IReportExporter, IReportRenderer
from .views import BatchSummary, StationAssetView, scope_assets_to_station, summarize_batches

__all__ = [
    # Entities
    "Asset",
    "Assignment",
    "BatchAllocation",
    "Batch",
    "Station",
    "Department",
    "Employee",
    "Account",
    "Role",
    "CurrentUser",
    "Item",
    "AggregatedBatch",
    "AggregatedAsset",
    "ReportRow",
    "StationAggregate",
    "StationReport",
    "StationUpdate",
    "BatchDraft",
    "AccountDraft",
    # Aggregation
    "aggregate_for_station",
    "flatten_report_rows",
    "coerce_identifier",
    # Views and analytics
    "BatchSummary",
    "StationAssetView",
    "summarize_batches",
    "scope_assets_to_station",
    "ChartEntry",
    "DashboardMetrics",
    "compute_dashboard",
    "group_small_items",
    # Ports
    "IRegisterRepository",
    "IReportRenderer",
    "IReportExporter",
]
