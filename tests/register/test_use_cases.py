"""Tests for register use cases."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.darb.api.exceptions import NotFoundError, ServerError, ValidationError
from src.darb.register.domain.entities import (
    Account,
    AccountDraft,
    Asset,
    Assignment,
    Batch,
    BatchAllocation,
    BatchDraft,
    Department,
    Employee,
    Role,
    Station,
    StationUpdate,
)
from src.darb.register.use_cases import (
    AddBatchUseCase,
    CreateAccountUseCase,
    DeleteAccountUseCase,
    GetAnalyticsUseCase,
    GetBatchSummaryUseCase,
    GetStationAssetsUseCase,
    GetStationReportUseCase,
    PrintDirectoryUseCase,
    UpdateStationUseCase,
)


@pytest.fixture
def pump_a():
    b1 = Batch(id=1, batch_name="B1", purchase_date=date(2024, 1, 10), purchase_price=Decimal("100"))
    return Asset(
        id=10,
        asset_name="Pump A",
        quantity=5,
        asset_value=Decimal("100"),
        assignments=[
            Assignment(
                id=100,
                station_id=5,
                quantity=2,
                assignment_value=Decimal("200"),
                batch_allocations=[
                    BatchAllocation(id=1, batch=b1, serial_number="S1"),
                    BatchAllocation(id=2, batch=b1, serial_number="S2"),
                ],
            )
        ],
    )


@pytest.fixture
def mock_repo(pump_a):
    repo = AsyncMock()
    repo.get_station.return_value = Station(id=5, name="North")
    repo.list_stations.return_value = [Station(id=5, name="North")]
    repo.list_assets.return_value = [pump_a]
    repo.list_employees.return_value = [Employee(id=1, name="Sam"), Employee(id=2, name="Ali")]
    repo.list_departments.return_value = [Department(id=1, name="Ops")]
    return repo


class TestGetStationReportUseCase:
    """Tests for GetStationReportUseCase."""

    @pytest.mark.asyncio
    async def test_builds_report(self, mock_repo):
        report = await GetStationReportUseCase(mock_repo).execute("5")

        mock_repo.list_assets.assert_called_once_with(station_id="5")
        assert report.station_id == 5
        assert report.title == "North"
        assert report.total_value == Decimal("200")
        assert len(report.rows) == 2
        assert report.aggregate.item_count == 2

    @pytest.mark.asyncio
    async def test_unknown_station(self, mock_repo):
        mock_repo.get_station.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await GetStationReportUseCase(mock_repo).execute("99")

        assert exc_info.value.details["resource_id"] == "99"

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self, mock_repo):
        mock_repo.list_assets.side_effect = ServerError("boom", status_code=500)

        with pytest.raises(ServerError):
            await GetStationReportUseCase(mock_repo).execute(5)


class TestPrintDirectoryUseCase:
    @pytest.mark.asyncio
    async def test_stations_and_departments(self, mock_repo):
        renderer = MagicMock()
        renderer.render_station_directory.return_value = "<html>stations</html>"
        renderer.render_department_directory.return_value = "<html>departments</html>"
        use_case = PrintDirectoryUseCase(mock_repo, renderer)

        assert await use_case.stations() == "<html>stations</html>"
        assert await use_case.departments() == "<html>departments</html>"
        renderer.render_station_directory.assert_called_once_with([Station(id=5, name="North")])


class TestAssetViewUseCases:
    @pytest.mark.asyncio
    async def test_batch_summary(self, mock_repo):
        mock_repo.list_batches.return_value = [
            Batch(id=1, purchase_price=Decimal("10"), quantity=4, remaining_quantity=1)
        ]

        summary = await GetBatchSummaryUseCase(mock_repo).execute(10)

        mock_repo.list_batches.assert_called_once_with(10)
        assert summary.total_value == Decimal("40")
        assert summary.assigned_quantity == 3

    @pytest.mark.asyncio
    async def test_station_assets(self, mock_repo):
        result = await GetStationAssetsUseCase(mock_repo).execute(5)

        assert result.station_id == 5
        assert len(result.assets) == 1
        assert result.assets[0].remaining_quantity == 3
        assert result.total_value == Decimal("200")


class TestGetAnalyticsUseCase:
    """Tests for GetAnalyticsUseCase."""

    @pytest.mark.asyncio
    async def test_one_employee_failure_is_isolated(self, mock_repo):
        async def employee_batches(employee_id):
            if employee_id == 2:
                raise ServerError("down", status_code=503)
            return [Batch(id=1, purchase_price=Decimal("100"))]

        mock_repo.list_employee_batches.side_effect = employee_batches

        metrics = await GetAnalyticsUseCase(mock_repo).execute()

        assert metrics.total_assets == 1
        assert metrics.total_stations == 1
        assert [e.name for e in metrics.top_employees_by_value] == ["Sam"]
        assert metrics.total_employee_assigned_value == Decimal("100")
        assert mock_repo.list_employee_batches.await_count == 2


class TestManageRegisterUseCases:
    """Validation before any mutation reaches the backend."""

    @pytest.mark.asyncio
    async def test_add_batch(self, mock_repo):
        draft = BatchDraft(purchase_price=Decimal("10"), quantity=2, batch_name="  ")
        mock_repo.create_batch.return_value = Batch(id=8, purchase_price=Decimal("10"), quantity=2)

        batch = await AddBatchUseCase(mock_repo).execute(10, draft)

        assert batch.id == 8
        sent = mock_repo.create_batch.call_args.args[1]
        assert sent.batch_name is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "price,quantity,field",
        [(Decimal("-1"), 1, "purchase_price"), (Decimal("1"), 0, "quantity")],
    )
    async def test_add_batch_rejects_invalid(self, mock_repo, price, quantity, field):
        with pytest.raises(ValidationError) as exc_info:
            await AddBatchUseCase(mock_repo).execute(10, BatchDraft(price, quantity))

        assert exc_info.value.field == field
        mock_repo.create_batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_station_requires_name(self, mock_repo):
        with pytest.raises(ValidationError):
            await UpdateStationUseCase(mock_repo).execute(5, StationUpdate(name="  "))
        mock_repo.update_station.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_account(self, mock_repo):
        mock_repo.create_account.return_value = Account(id=3, username="sam", role=Role.ADMIN)

        account = await CreateAccountUseCase(mock_repo).execute(
            AccountDraft(username="sam", password="secret1", role=Role.ADMIN)
        )

        assert account.id == 3

    @pytest.mark.asyncio
    async def test_create_account_short_password(self, mock_repo):
        with pytest.raises(ValidationError, match="at least 6"):
            await CreateAccountUseCase(mock_repo).execute(
                AccountDraft(username="sam", password="123")
            )
        mock_repo.create_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_account(self, mock_repo):
        await DeleteAccountUseCase(mock_repo).execute(3)
        mock_repo.delete_account.assert_awaited_once_with(3)
