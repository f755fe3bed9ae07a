"""Analytics use case.

Loads everything the dashboard needs and computes the metrics:
1. Fetch assets, stations, employees, and departments concurrently
2. Fetch each employee's assigned batches with bounded concurrency; one
   employee failing yields an empty list for that employee only
3. Compute dashboard metrics
"""

import asyncio
import logging
from typing import Any

from ...api.exceptions import RegisterError
from ...api.resilience import process_concurrent
from ..domain.analytics import DashboardMetrics, compute_dashboard
from ..domain.entities import Batch, Employee
from ..domain.ports import IRegisterRepository

logger = logging.getLogger(__name__)


class GetAnalyticsUseCase:
    """Compute dashboard metrics across the whole register."""

    def __init__(self, repository: IRegisterRepository, max_concurrent: int = 5):
        self.repository = repository
        self.max_concurrent = max_concurrent

    async def execute(self) -> DashboardMetrics:
        assets, stations, employees, departments = await asyncio.gather(
            self.repository.list_assets(),
            self.repository.list_stations(),
            self.repository.list_employees(),
            self.repository.list_departments(),
        )

        async def fetch(employee: Employee) -> list[Batch]:
            try:
                return await self.repository.list_employee_batches(employee.id)
            except RegisterError as e:
                logger.warning(f"Could not load assignments for employee {employee.id}: {e.code}")
                return []

        holdings = await process_concurrent(employees, fetch, max_concurrent=self.max_concurrent)
        employee_batches: dict[Any, list[Batch]] = {
            employee.id: batches for employee, batches in zip(employees, holdings)
        }

        metrics = compute_dashboard(
            assets=assets,
            stations=stations,
            employees=employees,
            departments=departments,
            employee_batches=employee_batches,
        )
        logger.info(
            f"Analytics: {metrics.total_assets} assets, {metrics.total_stations} stations, "
            f"total value {metrics.total_value}"
        )
        return metrics
