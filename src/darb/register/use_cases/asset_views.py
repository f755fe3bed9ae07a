"""Asset view use cases: per-asset batch valuation and station-scoped assets."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ..domain.entities import ZERO
from ..domain.ports import IRegisterRepository
from ..domain.views import (
    BatchSummary,
    StationAssetView,
    scope_assets_to_station,
    summarize_batches,
)

logger = logging.getLogger(__name__)


@dataclass
class StationAssetsResult:
    """Result of GetStationAssetsUseCase."""

    station_id: Any
    assets: list[StationAssetView] = field(default_factory=list)
    total_value: Decimal = ZERO


class GetBatchSummaryUseCase:
    """Purchase batches of one asset with quantity and value totals."""

    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, asset_id: Any) -> BatchSummary:
        batches = await self.repository.list_batches(asset_id)
        summary = summarize_batches(asset_id, batches)
        logger.info(
            f"Asset {asset_id}: {len(batches)} batches, "
            f"{summary.remaining_quantity}/{summary.total_quantity} units remaining"
        )
        return summary


class GetStationAssetsUseCase:
    """Assets as seen from one station, with assigned and remaining figures."""

    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, station_id: Any) -> StationAssetsResult:
        assets = await self.repository.list_assets(station_id=station_id)
        views, total = scope_assets_to_station(assets, station_id)
        return StationAssetsResult(station_id=station_id, assets=views, total_value=total)
