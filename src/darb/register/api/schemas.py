"""Pydantic schemas for API request/response validation.

Money is serialized as a decimal string (``"1234.50"``) so no precision is
lost between the backend and the browser.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..domain.analytics import ChartEntry, DashboardMetrics
from ..domain.entities import (
    Account,
    AggregatedAsset,
    Batch,
    Role,
    StationReport,
)
from ..domain.views import BatchSummary, StationAssetView
from ..use_cases.asset_views import StationAssetsResult


# ========== Station Report ==========


class ItemDTO(BaseModel):
    item_id: str
    serial_number: Optional[str] = None
    assignment_date: Optional[date] = None
    value: Decimal


class AggregatedBatchDTO(BaseModel):
    batch_id: Any
    batch_name: str
    purchase_date: Optional[date] = None
    purchase_price: Decimal
    items: list[ItemDTO] = Field(default_factory=list)


class AggregatedAssetDTO(BaseModel):
    """One asset of a station report with its batches and items."""

    asset_id: Any
    asset_name: str
    asset_number: Optional[str] = None
    item_count: int = 0
    batches: list[AggregatedBatchDTO] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, asset: AggregatedAsset) -> "AggregatedAssetDTO":
        return cls(
            asset_id=asset.asset_id,
            asset_name=asset.asset_name,
            asset_number=asset.asset_number,
            item_count=asset.item_count,
            batches=[
                AggregatedBatchDTO(
                    batch_id=batch.batch_id,
                    batch_name=batch.batch_name,
                    purchase_date=batch.purchase_date,
                    purchase_price=batch.purchase_price,
                    items=[
                        ItemDTO(
                            item_id=item.item_id,
                            serial_number=item.serial_number,
                            assignment_date=item.assignment_date,
                            value=item.value,
                        )
                        for item in batch.items
                    ],
                )
                for batch in asset.batches
            ],
        )


class StationDTO(BaseModel):
    """Station data transfer object."""

    id: Any
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None
    contact_number: Optional[str] = None
    remarks: Optional[str] = None
    asset_count: int = 0
    total_asset_value: Decimal = Decimal("0")

    class Config:
        from_attributes = True


class StationReportResponse(BaseModel):
    """Grouped Asset -> Batch -> Item report for one station."""

    station_id: Any
    station: Optional[StationDTO] = None
    title: str
    grouped_assets: list[AggregatedAssetDTO] = Field(default_factory=list)
    total_value: Decimal
    item_count: int = 0
    generated_at: datetime

    @classmethod
    def from_report(cls, report: StationReport) -> "StationReportResponse":
        return cls(
            station_id=report.station_id,
            station=StationDTO.model_validate(report.station) if report.station else None,
            title=report.title,
            grouped_assets=[AggregatedAssetDTO.from_entity(a) for a in report.grouped_assets],
            total_value=report.total_value,
            item_count=report.aggregate.item_count,
            generated_at=report.generated_at,
        )


class StationUpdateRequest(BaseModel):
    """Request to update a station's details."""

    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    manager: Optional[str] = None
    contact_number: Optional[str] = None
    remarks: Optional[str] = None


# ========== Assets and Batches ==========


class BatchDTO(BaseModel):
    id: Any = None
    batch_name: Optional[str] = None
    label: str
    purchase_date: Optional[date] = None
    purchase_price: Decimal
    quantity: int = 0
    remaining_quantity: int = 0
    total_value: Decimal
    remaining_value: Decimal
    remarks: Optional[str] = None

    @classmethod
    def from_entity(cls, batch: Batch) -> "BatchDTO":
        return cls(
            id=batch.id,
            batch_name=batch.batch_name,
            label=batch.label,
            purchase_date=batch.purchase_date,
            purchase_price=batch.purchase_price,
            quantity=batch.quantity,
            remaining_quantity=batch.remaining_quantity,
            total_value=batch.total_value,
            remaining_value=batch.remaining_value,
            remarks=batch.remarks,
        )


class BatchSummaryResponse(BaseModel):
    """Purchase batches of one asset with valuation totals."""

    asset_id: Any
    batches: list[BatchDTO] = Field(default_factory=list)
    total_quantity: int = 0
    remaining_quantity: int = 0
    assigned_quantity: int = 0
    total_value: Decimal
    remaining_value: Decimal
    assigned_value: Decimal

    @classmethod
    def from_summary(cls, summary: BatchSummary) -> "BatchSummaryResponse":
        return cls(
            asset_id=summary.asset_id,
            batches=[BatchDTO.from_entity(b) for b in summary.batches],
            total_quantity=summary.total_quantity,
            remaining_quantity=summary.remaining_quantity,
            assigned_quantity=summary.assigned_quantity,
            total_value=summary.total_value,
            remaining_value=summary.remaining_value,
            assigned_value=summary.assigned_value,
        )


class BatchCreateRequest(BaseModel):
    """Request to record a new purchase batch."""

    purchase_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    purchase_date: Optional[date] = None
    batch_name: Optional[str] = None
    remarks: Optional[str] = None


class StationAssetDTO(BaseModel):
    asset_id: Any
    asset_name: str
    asset_number: Optional[str] = None
    category_name: Optional[str] = None
    quantity: Optional[int] = None
    asset_value: Decimal
    total_assigned: int = 0
    total_assigned_value: Decimal
    remaining_quantity: Optional[int] = None
    remaining_value: Optional[Decimal] = None

    @classmethod
    def from_view(cls, view: StationAssetView) -> "StationAssetDTO":
        return cls(
            asset_id=view.asset.id,
            asset_name=view.asset.asset_name,
            asset_number=view.asset.asset_number,
            category_name=view.asset.category_name,
            quantity=view.asset.quantity,
            asset_value=view.asset.asset_value,
            total_assigned=view.total_assigned,
            total_assigned_value=view.total_assigned_value,
            remaining_quantity=view.remaining_quantity,
            remaining_value=view.remaining_value,
        )


class StationAssetsResponse(BaseModel):
    station_id: Any
    assets: list[StationAssetDTO] = Field(default_factory=list)
    total_value: Decimal

    @classmethod
    def from_result(cls, result: StationAssetsResult) -> "StationAssetsResponse":
        return cls(
            station_id=result.station_id,
            assets=[StationAssetDTO.from_view(v) for v in result.assets],
            total_value=result.total_value,
        )


# ========== Accounts ==========


class AccountDTO(BaseModel):
    id: Any
    username: str
    role: Optional[Role] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_entity(cls, account: Account) -> "AccountDTO":
        return cls.model_validate(account)


class AccountCreateRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    role: Role = Role.VIEWING_USER


# ========== Analytics ==========


class ChartEntryDTO(BaseModel):
    """One chart bar or slice; "Others" entries list what they folded."""

    name: str
    value: Decimal
    id: Any = None
    employee_id: Optional[str] = None
    others: list["ChartEntryDTO"] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: ChartEntry) -> "ChartEntryDTO":
        return cls(
            name=entry.name,
            value=entry.value,
            id=entry.id,
            employee_id=entry.employee_id,
            others=[cls.from_entry(e) for e in entry.others],
        )


ChartEntryDTO.model_rebuild()


class AnalyticsResponse(BaseModel):
    """Dashboard metrics across the whole register."""

    total_assets: int = 0
    total_value: Decimal
    total_stations: int = 0
    total_batch_items: int = 0
    total_assigned_items: int = 0
    total_station_assigned_value: Decimal
    total_employee_assigned_value: Decimal
    total_assigned_value: Decimal
    top_stations_by_value: list[ChartEntryDTO] = Field(default_factory=list)
    top_stations_by_items: list[ChartEntryDTO] = Field(default_factory=list)
    top_employees_by_value: list[ChartEntryDTO] = Field(default_factory=list)
    top_employees_by_items: list[ChartEntryDTO] = Field(default_factory=list)
    top_assets_by_items: list[ChartEntryDTO] = Field(default_factory=list)
    top_assets_by_value: list[ChartEntryDTO] = Field(default_factory=list)
    category_distribution: list[ChartEntryDTO] = Field(default_factory=list)
    department_value: list[ChartEntryDTO] = Field(default_factory=list)
    department_employee_count: list[ChartEntryDTO] = Field(default_factory=list)

    @classmethod
    def from_metrics(cls, metrics: DashboardMetrics) -> "AnalyticsResponse":
        def entries(values: list[ChartEntry]) -> list[ChartEntryDTO]:
            return [ChartEntryDTO.from_entry(e) for e in values]

        return cls(
            total_assets=metrics.total_assets,
            total_value=metrics.total_value,
            total_stations=metrics.total_stations,
            total_batch_items=metrics.total_batch_items,
            total_assigned_items=metrics.total_assigned_items,
            total_station_assigned_value=metrics.total_station_assigned_value,
            total_employee_assigned_value=metrics.total_employee_assigned_value,
            total_assigned_value=metrics.total_assigned_value,
            top_stations_by_value=entries(metrics.top_stations_by_value),
            top_stations_by_items=entries(metrics.top_stations_by_items),
            top_employees_by_value=entries(metrics.top_employees_by_value),
            top_employees_by_items=entries(metrics.top_employees_by_items),
            top_assets_by_items=entries(metrics.top_assets_by_items),
            top_assets_by_value=entries(metrics.top_assets_by_value),
            category_distribution=entries(metrics.category_distribution),
            department_value=entries(metrics.department_value),
            department_employee_count=entries(metrics.department_employee_count),
        )


# ========== Current User ==========


class CurrentUserResponse(BaseModel):
    authenticated: bool
    username: Optional[str] = None
    role: Optional[Role] = None
    can_view: bool = False
    can_assign: bool = False
    is_admin: bool = False
