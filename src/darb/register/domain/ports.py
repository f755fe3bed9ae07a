"""Port interfaces for the asset register.

These are abstract interfaces (ports) that define how the use cases reach
the outside world. Concrete implementations (adapters) are provided in the
adapters module.

This follows the Hexagonal Architecture pattern.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .entities import (
    Account,
    AccountDraft,
    Asset,
    Batch,
    BatchDraft,
    CurrentUser,
    Department,
    Employee,
    Station,
    StationReport,
    StationUpdate,
)


class IRegisterRepository(ABC):
    """Port for register data held by the backend.

    One instance acts on behalf of one caller; implementations carry the
    caller's credentials themselves.
    """

    @abstractmethod
    async def get_current_user(self) -> CurrentUser:
        """Resolve the caller. Unauthenticated callers get authenticated=False."""
        ...

    @abstractmethod
    async def list_stations(self) -> list[Station]:
        ...

    @abstractmethod
    async def get_station(self, station_id: Any) -> Optional[Station]:
        """Find one station by id (compared numerically).

        Returns:
            Station if found, None otherwise
        """
        ...

    @abstractmethod
    async def update_station(self, station_id: Any, update: StationUpdate) -> Station:
        ...

    @abstractmethod
    async def delete_station(self, station_id: Any) -> None:
        ...

    @abstractmethod
    async def list_departments(self) -> list[Department]:
        ...

    @abstractmethod
    async def list_employees(self) -> list[Employee]:
        ...

    @abstractmethod
    async def list_employee_batches(self, employee_id: Any) -> list[Batch]:
        """Batches of the units assigned to one employee (one per unit)."""
        ...

    @abstractmethod
    async def list_assets(self, station_id: Any = None) -> list[Asset]:
        """List assets, optionally only those assigned to a station.

        The station filter is applied by the backend and may be loose; the
        caller still scopes assignments itself.
        """
        ...

    @abstractmethod
    async def list_batches(self, asset_id: Any) -> list[Batch]:
        ...

    @abstractmethod
    async def create_batch(self, asset_id: Any, draft: BatchDraft) -> Batch:
        ...

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        ...

    @abstractmethod
    async def create_account(self, draft: AccountDraft) -> Account:
        ...

    @abstractmethod
    async def delete_account(self, account_id: Any) -> None:
        ...


class IReportRenderer(ABC):
    """Port for printable (HTML) documents."""

    @abstractmethod
    def render_station_report(self, report: StationReport) -> str:
        ...

    @abstractmethod
    def render_station_directory(self, stations: list[Station]) -> str:
        ...

    @abstractmethod
    def render_department_directory(self, departments: list[Department]) -> str:
        ...


class IReportExporter(ABC):
    """Port for tabular station report downloads."""

    @abstractmethod
    async def export(self, report: StationReport, fmt: str) -> bytes:
        """Serialize the report's flat rows.

        Args:
            report: Station report to export
            fmt: "csv" or "xlsx"
        """
        ...
