"""Directory Print use case: all stations or all departments as print HTML."""

import logging

from ..domain.ports import IRegisterRepository, IReportRenderer

logger = logging.getLogger(__name__)


class PrintDirectoryUseCase:
    def __init__(self, repository: IRegisterRepository, renderer: IReportRenderer):
        self.repository = repository
        self.renderer = renderer

    async def stations(self) -> str:
        stations = await self.repository.list_stations()
        logger.info(f"Printing directory of {len(stations)} stations")
        return self.renderer.render_station_directory(stations)

    async def departments(self) -> str:
        departments = await self.repository.list_departments()
        logger.info(f"Printing directory of {len(departments)} departments")
        return self.renderer.render_department_directory(departments)
