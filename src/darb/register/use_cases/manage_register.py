"""Register mutation use cases: stations, purchase batches, and accounts.

Payloads are validated here before anything is sent to the backend; the
caller's permission is checked by the API layer.
"""

import logging
from typing import Any

from ...api.exceptions import ValidationError
from ..domain.entities import Account, AccountDraft, Batch, BatchDraft, Station, StationUpdate
from ..domain.ports import IRegisterRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UpdateStationUseCase:
    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, station_id: Any, update: StationUpdate) -> Station:
        if not update.name or not update.name.strip():
            raise ValidationError("Station name is required", field="name")
        station = await self.repository.update_station(station_id, update)
        logger.info(f"Updated station {station_id}")
        return station


class DeleteStationUseCase:
    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, station_id: Any) -> None:
        await self.repository.delete_station(station_id)


class AddBatchUseCase:
    """Record a new purchase batch for an asset.

    Rules:
    - purchase_price must be >= 0
    - quantity must be >= 1
    - a blank batch name is stored as null
    """

    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, asset_id: Any, draft: BatchDraft) -> Batch:
        if draft.purchase_price < 0:
            raise ValidationError("Purchase price cannot be negative", field="purchase_price")
        if draft.quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")

        batch = await self.repository.create_batch(asset_id, draft)
        logger.info(
            f"Added batch to asset {asset_id}: {draft.quantity} units at {draft.purchase_price}"
        )
        return batch


class CreateAccountUseCase:
    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, draft: AccountDraft) -> Account:
        if not draft.username or not draft.password:
            raise ValidationError("Username and password are required")
        if len(draft.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )
        account = await self.repository.create_account(draft)
        logger.info(f"Created account {draft.username} ({draft.role.value})")
        return account


class DeleteAccountUseCase:
    def __init__(self, repository: IRegisterRepository):
        self.repository = repository

    async def execute(self, account_id: Any) -> None:
        await self.repository.delete_account(account_id)
