"""REST backend adapter for the register repository.

This adapter implements IRegisterRepository on top of RegisterClient. One
instance is created per API request and carries that caller's bearer token;
the CLI creates one without a token and lets the client's
SessionTokenManager log in instead.
"""

import logging
from typing import Any, Optional

from ...api.client import RegisterClient
from ...api.exceptions import UnauthorizedError
from ..domain.aggregation import coerce_identifier
from ..domain.entities import (
    Account,
    AccountDraft,
    Asset,
    Batch,
    BatchDraft,
    CurrentUser,
    Department,
    Employee,
    Station,
    StationUpdate,
)
from ..domain.ports import IRegisterRepository
from .field_mapper import RegisterFieldMapper

logger = logging.getLogger(__name__)


class BackendRegisterRepository(IRegisterRepository):
    """IRegisterRepository backed by the register's REST API."""

    def __init__(
        self,
        client: RegisterClient,
        token: Optional[str] = None,
        mapper: Optional[RegisterFieldMapper] = None,
    ):
        """Initialize with a shared client.

        Args:
            client: Open RegisterClient
            token: Caller's bearer token; None to use the client's token manager
            mapper: Field mapper (default: RegisterFieldMapper())
        """
        self.client = client
        self.token = token
        self.mapper = mapper or RegisterFieldMapper()

    async def _get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        return await self.client.get(endpoint, params=params, token=self.token)

    async def get_current_user(self) -> CurrentUser:
        if self.token is None and self.client.token_manager is None:
            return CurrentUser(authenticated=False)
        try:
            data = await self._get("/api/me")
        except UnauthorizedError:
            return CurrentUser(authenticated=False)
        return self.mapper.map_current_user(data)

    # ----------------------------------------
    # Stations
    # ----------------------------------------

    async def list_stations(self) -> list[Station]:
        return self.mapper.map_stations(await self._get("/api/pumps"))

    async def get_station(self, station_id: Any) -> Optional[Station]:
        target = coerce_identifier(station_id)
        if target is None:
            return None
        for station in await self.list_stations():
            if coerce_identifier(station.id) == target:
                return station
        return None

    async def update_station(self, station_id: Any, update: StationUpdate) -> Station:
        data = await self.client.put(
            f"/api/pumps/{station_id}", json_body=update.to_payload(), token=self.token
        )
        if isinstance(data, dict) and data.get("id") is not None:
            return self.mapper.map_station(data)
        return Station(id=station_id, **update.to_payload())

    async def delete_station(self, station_id: Any) -> None:
        await self.client.delete(f"/api/pumps/{station_id}", token=self.token)
        logger.info(f"Deleted station {station_id}")

    # ----------------------------------------
    # Departments and employees
    # ----------------------------------------

    async def list_departments(self) -> list[Department]:
        return self.mapper.map_departments(await self._get("/api/departments"))

    async def list_employees(self) -> list[Employee]:
        return self.mapper.map_employees(await self._get("/api/employees"))

    async def list_employee_batches(self, employee_id: Any) -> list[Batch]:
        data = await self._get(f"/api/employees/{employee_id}/assignments")
        return self.mapper.map_employee_batches(data)

    # ----------------------------------------
    # Assets and batches
    # ----------------------------------------

    async def list_assets(self, station_id: Any = None) -> list[Asset]:
        params = {"pump_id": station_id} if station_id is not None else None
        assets = self.mapper.map_assets(await self._get("/api/assets", params=params))
        logger.debug(f"Fetched {len(assets)} assets (station={station_id})")
        return assets

    async def list_batches(self, asset_id: Any) -> list[Batch]:
        return self.mapper.map_batches(await self._get(f"/api/assets/{asset_id}/batches"))

    async def create_batch(self, asset_id: Any, draft: BatchDraft) -> Batch:
        data = await self.client.post(
            f"/api/assets/{asset_id}/batches", json_body=draft.to_payload(), token=self.token
        )
        if isinstance(data, dict) and data.get("id") is not None:
            return self.mapper.map_batch(data)
        return Batch(
            id=None,
            batch_name=draft.batch_name,
            purchase_date=draft.purchase_date,
            purchase_price=draft.purchase_price,
            quantity=draft.quantity,
            remaining_quantity=draft.quantity,
            remarks=draft.remarks,
            asset_id=asset_id,
        )

    # ----------------------------------------
    # Accounts
    # ----------------------------------------

    async def list_accounts(self) -> list[Account]:
        return self.mapper.map_accounts(await self._get("/api/accounts"))

    async def create_account(self, draft: AccountDraft) -> Account:
        data = await self.client.post("/api/accounts", json_body=draft.to_payload(), token=self.token)
        if isinstance(data, dict) and data.get("id") is not None:
            return self.mapper.map_account(data)
        return Account(id=None, username=draft.username, role=draft.role)

    async def delete_account(self, account_id: Any) -> None:
        await self.client.delete(f"/api/accounts/{account_id}", token=self.token)
        logger.info(f"Deleted account {account_id}")
