"""Tests for register domain entities."""

from datetime import date
from decimal import Decimal

import pytest

from src.darb.register.domain.entities import (
    AccountDraft,
    AggregatedAsset,
    AggregatedBatch,
    Batch,
    BatchDraft,
    CurrentUser,
    Item,
    ReportRow,
    Role,
    Station,
    StationAggregate,
    StationReport,
)


class TestBatch:
    """Tests for Batch entity."""

    def test_label_falls_back_to_id(self):
        assert Batch(id=3).label == "Batch #3"
        assert Batch(id=3, batch_name="Spring order").label == "Spring order"

    def test_values(self):
        batch = Batch(id=1, purchase_price=Decimal("12.50"), quantity=4, remaining_quantity=1)
        assert batch.total_value == Decimal("50.00")
        assert batch.remaining_value == Decimal("12.50")


class TestCurrentUser:
    """Role permissions mirror the backend."""

    @pytest.mark.parametrize(
        "role,view,assign,admin",
        [
            (Role.ADMIN, True, True, True),
            (Role.ASSIGNING_USER, True, True, False),
            (Role.VIEWING_USER, True, False, False),
        ],
    )
    def test_role_permissions(self, role, view, assign, admin):
        user = CurrentUser(authenticated=True, username="u", role=role)
        assert user.can_view is view
        assert user.can_assign is assign
        assert user.is_admin is admin

    def test_unauthenticated_has_no_permissions(self):
        user = CurrentUser(authenticated=False, role=Role.ADMIN)
        assert not user.can_view
        assert not user.can_assign
        assert not user.is_admin

    def test_unknown_role_cannot_view(self):
        assert not CurrentUser(authenticated=True, username="u", role=None).can_view


class TestBatchDraft:
    """Tests for BatchDraft write payload."""

    def test_blank_name_becomes_none(self):
        draft = BatchDraft(purchase_price=Decimal("10"), quantity=1, batch_name="   ", remarks=" ")
        assert draft.batch_name is None
        assert draft.remarks is None

    def test_name_is_stripped(self):
        assert BatchDraft(Decimal("1"), 1, batch_name="  Q2  ").batch_name == "Q2"

    def test_payload(self):
        draft = BatchDraft(
            purchase_price=Decimal("199.5"),
            quantity=3,
            purchase_date=date(2024, 1, 10),
            batch_name="Q1",
        )
        payload = draft.to_payload()
        assert payload["purchase_price"] == 199.5
        assert payload["quantity"] == 3
        assert payload["batch_name"] == "Q1"
        assert payload["purchase_date"] == "2024-01-10T00:00:00Z"

    def test_payload_without_date(self):
        assert "purchase_date" not in BatchDraft(Decimal("1"), 1).to_payload()


class TestAccountDraft:
    def test_default_role_is_viewer(self):
        payload = AccountDraft(username="sam", password="secret1").to_payload()
        assert payload == {"username": "sam", "password": "secret1", "role": "viewing_user"}


class TestReportStructures:
    """Tests for aggregated report structures."""

    def test_aggregated_asset_item_count(self):
        asset = AggregatedAsset(
            asset_id=1,
            asset_name="Pump A",
            batches=[
                AggregatedBatch(
                    batch_id=2,
                    batch_name="B1",
                    purchase_price=Decimal("100"),
                    items=[
                        Item(item_id="7", serial_number="S1", value=Decimal("100")),
                        Item(item_id="8", serial_number="S2", value=Decimal("100")),
                    ],
                )
            ],
        )
        assert asset.item_count == 2
        assert [i.serial_number for i in asset.batches[0].items] == ["S1", "S2"]

    def test_report_title_uses_station_name(self):
        report = StationReport(
            station_id=5,
            aggregate=StationAggregate(),
            station=Station(id=5, name="North Pump"),
        )
        assert report.title == "North Pump"

    def test_report_title_fallbacks(self):
        assert StationReport(station_id=5, aggregate=StationAggregate()).title == "Station #5"
        unnamed = StationReport(
            station_id=5, aggregate=StationAggregate(), station=Station(id=5, name="")
        )
        assert unnamed.title == "Station #5"

    def test_report_row_to_dict(self):
        row = ReportRow(
            asset_name="Pump A",
            asset_number=None,
            batch_name="B1",
            purchase_date=date(2024, 1, 10),
            serial_number="S1",
            assignment_date=None,
            value=Decimal("100.50"),
        )

        assert row.to_dict() == {
            "asset_name": "Pump A",
            "asset_number": None,
            "batch_name": "B1",
            "purchase_date": "2024-01-10",
            "serial_number": "S1",
            "assignment_date": None,
            "value": "100.50",
        }
