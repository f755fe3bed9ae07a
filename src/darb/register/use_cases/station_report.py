"""Station Report use case.

Builds the grouped Asset -> Batch -> Item report for one station:
1. Fetch the station and its assets from the backend (concurrently)
2. Aggregate the assets for the station
3. Project the hierarchy into printable rows
"""

import asyncio
import logging
from typing import Any

from ...api.exceptions import NotFoundError
from ..domain.aggregation import aggregate_for_station, flatten_report_rows
from ..domain.entities import StationReport
from ..domain.ports import IRegisterRepository

logger = logging.getLogger(__name__)


class GetStationReportUseCase:
    """Build the station report consumed by the JSON view, print, and export."""

    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, station_id: Any) -> StationReport:
        """Execute the use case.

        Raises:
            NotFoundError: If the backend has no such station
        """
        station, assets = await asyncio.gather(
            self.repository.get_station(station_id),
            self.repository.list_assets(station_id=station_id),
        )
        if station is None:
            raise NotFoundError(resource_type="Station", resource_id=str(station_id))

        aggregate = aggregate_for_station(assets, station.id)
        report = StationReport(
            station_id=station.id,
            station=station,
            aggregate=aggregate,
            rows=flatten_report_rows(aggregate.grouped_assets),
        )

        logger.info(
            f"Station {station.id} report: {len(aggregate.grouped_assets)} assets, "
            f"{aggregate.item_count} items, total {aggregate.total_value}"
        )
        return report
