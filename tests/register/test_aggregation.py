"""Tests for station aggregation (Asset -> Batch -> Item)."""

import copy
from datetime import date
from decimal import Decimal

import pytest

from src.darb.register.domain.aggregation import (
    aggregate_for_station,
    coerce_identifier,
    flatten_report_rows,
)
from src.darb.register.domain.entities import (
    Asset,
    Assignment,
    Batch,
    BatchAllocation,
)


def make_batch(batch_id, price, name=None, purchased=None):
    return Batch(
        id=batch_id,
        batch_name=name,
        purchase_date=purchased,
        purchase_price=Decimal(str(price)),
    )


def make_alloc(alloc_id, batch, serial=None, assigned=None):
    return BatchAllocation(
        id=alloc_id,
        batch_id=batch.id if batch else None,
        batch=batch,
        serial_number=serial,
        assignment_date=assigned,
    )


@pytest.fixture
def pump_a():
    """Two assignments to station 5, both drawing units from batch B1."""
    b1 = make_batch(1, 100, name="B1", purchased=date(2024, 1, 10))
    return Asset(
        id=10,
        asset_name="Pump A",
        asset_number="PA-1",
        assignments=[
            Assignment(
                id=100,
                station_id=5,
                assignment_date=date(2024, 2, 1),
                batch_allocations=[make_alloc(1000, b1, serial="S1")],
            ),
            Assignment(
                id=101,
                station_id=5,
                assignment_date=date(2024, 2, 2),
                batch_allocations=[make_alloc(1001, b1, serial="S2")],
            ),
        ],
    )


# ============================================
# Identifier Coercion
# ============================================


class TestCoerceIdentifier:
    """Tests for numeric station id comparison."""

    @pytest.mark.parametrize("value", [5, "5", "5.0", 5.0, " 5 ", Decimal("5.00")])
    def test_equivalent_forms_match(self, value):
        assert coerce_identifier(value) == Decimal(5)

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", True, False, float("nan"), "inf"])
    def test_non_numeric_is_none(self, value):
        assert coerce_identifier(value) is None


# ============================================
# Worked Examples
# ============================================


class TestAggregateForStation:
    """Tests for aggregate_for_station."""

    def test_pump_a_groups_into_one_batch(self, pump_a):
        result = aggregate_for_station([pump_a], 5)

        assert len(result.grouped_assets) == 1
        asset = result.grouped_assets[0]
        assert asset.asset_id == 10
        assert asset.asset_name == "Pump A"
        assert asset.asset_number == "PA-1"
        assert len(asset.batches) == 1

        batch = asset.batches[0]
        assert batch.batch_id == 1
        assert batch.batch_name == "B1"
        assert batch.purchase_date == date(2024, 1, 10)
        assert batch.purchase_price == Decimal("100")
        assert [item.serial_number for item in batch.items] == ["S1", "S2"]
        assert result.total_value == Decimal("200")

    def test_item_dates_fall_back_to_assignment(self, pump_a):
        pump_a.assignments[0].batch_allocations[0].assignment_date = date(2024, 3, 3)

        items = aggregate_for_station([pump_a], 5).grouped_assets[0].batches[0].items

        assert items[0].assignment_date == date(2024, 3, 3)
        assert items[1].assignment_date == date(2024, 2, 2)

    def test_item_ids_use_allocation_id(self, pump_a):
        items = aggregate_for_station([pump_a], 5).grouped_assets[0].batches[0].items
        assert [item.item_id for item in items] == ["1000", "1001"]

    def test_synthesized_item_id_without_allocation_id(self):
        b1 = make_batch(7, 10)
        asset = Asset(
            id=1,
            asset_name="Hose",
            assignments=[
                Assignment(
                    id=55,
                    station_id=5,
                    batch_allocations=[make_alloc(None, b1), make_alloc(None, b1)],
                )
            ],
        )

        items = aggregate_for_station([asset], 5).grouped_assets[0].batches[0].items

        assert [item.item_id for item in items] == ["55_7_0", "55_7_1"]

    def test_missing_allocations_excludes_asset(self):
        asset = Asset(
            id=1,
            asset_name="Pump",
            assignments=[Assignment(id=1, station_id=5, batch_allocations=[])],
        )

        result = aggregate_for_station([asset], 5)

        assert result.grouped_assets == []
        assert result.total_value == Decimal("0")
        assert result.is_empty

    def test_two_assets_in_input_order(self):
        first = Asset(
            id=2,
            asset_name="Nozzle",
            assignments=[
                Assignment(id=1, station_id=7, batch_allocations=[make_alloc(1, make_batch(20, 50))])
            ],
        )
        second = Asset(
            id=1,
            asset_name="Meter",
            assignments=[
                Assignment(id=2, station_id=7, batch_allocations=[make_alloc(2, make_batch(21, 75))])
            ],
        )

        result = aggregate_for_station([first, second], 7)

        assert [a.asset_name for a in result.grouped_assets] == ["Nozzle", "Meter"]
        assert result.total_value == Decimal("125")

    def test_price_counted_per_allocation(self):
        b1 = make_batch(1, "12.50")
        asset = Asset(
            id=1,
            asset_name="Valve",
            assignments=[
                Assignment(
                    id=1,
                    station_id=3,
                    batch_allocations=[make_alloc(i, b1) for i in range(3)],
                )
            ],
        )

        assert aggregate_for_station([asset], 3).total_value == Decimal("37.50")

    def test_mixed_batch_id_types_share_one_batch(self):
        asset = Asset(
            id=1,
            asset_name="Valve",
            assignments=[
                Assignment(
                    id=1,
                    station_id=3,
                    batch_allocations=[
                        make_alloc(1, make_batch(7, 20, name="B7"), serial="S1"),
                        make_alloc(2, make_batch("7", 20, name="B7"), serial="S2"),
                    ],
                ),
                Assignment(
                    id=2,
                    station_id="3",
                    batch_allocations=[make_alloc(3, make_batch("7.0", 20), serial="S3")],
                ),
            ],
        )

        result = aggregate_for_station([asset], 3)

        batches = result.grouped_assets[0].batches
        assert len(batches) == 1
        assert batches[0].batch_id == 7
        assert [i.serial_number for i in batches[0].items] == ["S1", "S2", "S3"]
        assert result.total_value == Decimal("60")

    def test_mixed_asset_id_types_share_one_asset(self, pump_a):
        twin = copy.deepcopy(pump_a)
        twin.id = "10"

        result = aggregate_for_station([pump_a, twin], 5)

        assert len(result.grouped_assets) == 1
        assert result.grouped_assets[0].item_count == 4


# ============================================
# Omission Safety
# ============================================


class TestOmission:
    """Unresolvable or foreign data contributes nothing."""

    def test_other_station_ignored(self, pump_a):
        pump_a.assignments[1].station_id = 6

        result = aggregate_for_station([pump_a], 5)

        assert result.grouped_assets[0].item_count == 1
        assert result.total_value == Decimal("100")

    def test_null_batch_allocation_dropped(self):
        asset = Asset(
            id=1,
            asset_name="Pump",
            assignments=[
                Assignment(
                    id=1,
                    station_id=5,
                    batch_allocations=[
                        BatchAllocation(id=1, batch_id=9, batch=None),
                        make_alloc(2, make_batch(3, 40)),
                    ],
                )
            ],
        )

        result = aggregate_for_station([asset], 5)

        assert result.item_count == 1
        assert result.total_value == Decimal("40")

    def test_batch_without_any_id_dropped(self):
        orphan = BatchAllocation(id=1, batch_id=None, batch=make_batch(None, 99))
        asset = Asset(
            id=1,
            asset_name="Pump",
            assignments=[Assignment(id=1, station_id=5, batch_allocations=[orphan])],
        )

        assert aggregate_for_station([asset], 5).is_empty

    def test_batch_id_used_when_embedded_batch_has_no_id(self):
        alloc = BatchAllocation(id=1, batch_id=4, batch=make_batch(None, 10))
        asset = Asset(
            id=1,
            asset_name="Pump",
            assignments=[Assignment(id=1, station_id=5, batch_allocations=[alloc])],
        )

        batch = aggregate_for_station([asset], 5).grouped_assets[0].batches[0]

        assert batch.batch_id == 4
        assert batch.batch_name == "Batch #4"

    def test_asset_without_assignments(self):
        assert aggregate_for_station([Asset(id=1, asset_name="Spare")], 5).is_empty

    @pytest.mark.parametrize("station_id", [None, "", "abc"])
    def test_non_numeric_station_matches_nothing(self, pump_a, station_id):
        result = aggregate_for_station([pump_a], station_id)
        assert result.is_empty
        assert result.total_value == Decimal("0")

    @pytest.mark.parametrize("station_id", ["5", "5.0", 5.0])
    def test_string_station_ids_match(self, pump_a, station_id):
        assert aggregate_for_station([pump_a], station_id).total_value == Decimal("200")

    def test_empty_input(self):
        assert aggregate_for_station([], 5).is_empty


# ============================================
# Properties
# ============================================


class TestProperties:
    """Idempotence, immutability, ordering, and value conservation."""

    def test_input_not_mutated(self, pump_a):
        before = copy.deepcopy(pump_a)
        aggregate_for_station([pump_a], 5)
        assert pump_a == before

    def test_idempotent(self, pump_a):
        assert aggregate_for_station([pump_a], 5) == aggregate_for_station([pump_a], 5)

    def test_batches_in_first_seen_order(self):
        b_late = make_batch(9, 1, name="late")
        b_early = make_batch(2, 1, name="early")
        asset = Asset(
            id=1,
            asset_name="Pump",
            assignments=[
                Assignment(id=1, station_id=5, batch_allocations=[make_alloc(1, b_late)]),
                Assignment(id=2, station_id=5, batch_allocations=[make_alloc(2, b_early)]),
                Assignment(id=3, station_id=5, batch_allocations=[make_alloc(3, b_late)]),
            ],
        )

        batches = aggregate_for_station([asset], 5).grouped_assets[0].batches

        assert [b.batch_name for b in batches] == ["late", "early"]
        assert [len(b.items) for b in batches] == [2, 1]

    def test_total_equals_sum_of_items(self, pump_a):
        result = aggregate_for_station([pump_a], 5)
        items = [i for a in result.grouped_assets for b in a.batches for i in b.items]
        assert sum(i.value for i in items) == result.total_value


class TestFlattenReportRows:
    """Tests for the flat print/export projection."""

    def test_one_row_per_item(self, pump_a):
        result = aggregate_for_station([pump_a], 5)

        rows = flatten_report_rows(result.grouped_assets)

        assert len(rows) == 2
        assert rows[0].asset_name == "Pump A"
        assert rows[0].batch_name == "B1"
        assert rows[0].serial_number == "S1"
        assert rows[1].assignment_date == date(2024, 2, 2)
        assert sum(r.value for r in rows) == result.total_value

    def test_empty(self):
        assert flatten_report_rows([]) == []
