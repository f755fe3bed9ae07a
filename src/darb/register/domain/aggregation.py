"""Station assignment aggregation.

Turns a flat list of assets into the Asset -> Batch -> Item hierarchy for a
single station and values it. Everything here is pure: no I/O, no logging,
inputs are never mutated, and malformed nested data is skipped rather than
reported.

Valuation counts a batch's purchase price once per allocation row, so a
batch with three allocated units at one station contributes its price three
times. This matches the one-row-per-physical-item print layout.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .entities import (
    ZERO,
    AggregatedAsset,
    AggregatedBatch,
    Asset,
    Item,
    ReportRow,
    StationAggregate,
)


def coerce_identifier(value: Any) -> Optional[Decimal]:
    """Numeric value of a station identifier, or None if it has none.

    The backend sends station ids as ints in some payloads and strings in
    others, so ``5``, ``"5"`` and ``"5.0"`` all coerce to the same value.
    Booleans, blanks, NaN and infinities never match anything.

    >>> coerce_identifier("5") == coerce_identifier(5.0)
    True
    >>> coerce_identifier("abc") is None
    True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def identity_key(identifier: Any) -> Any:
    """Map key that treats 5, "5" and "5.0" as the same record."""
    number = coerce_identifier(identifier)
    return number if number is not None else identifier


def aggregate_for_station(assets: Iterable[Asset], station_id: Any) -> StationAggregate:
    """Group the assets assigned to one station by batch and item.

    Args:
        assets: Assets as returned by the backend, in display order
        station_id: Target station, compared numerically

    Returns:
        StationAggregate with assets and batches in first-seen order. Assets
        with no resolvable allocation at the station are left out, as is
        everything when station_id itself is not numeric.
    """
    target = coerce_identifier(station_id)
    if target is None:
        return StationAggregate()

    grouped: dict[Any, AggregatedAsset] = {}
    batches_by_asset: dict[Any, dict[Any, AggregatedBatch]] = {}
    total = ZERO

    for asset in assets:
        matching = [
            assignment
            for assignment in (asset.assignments or [])
            if coerce_identifier(assignment.station_id) == target
        ]
        if not matching:
            continue
        asset_key = identity_key(asset.id)

        for assignment in matching:
            for allocation in assignment.batch_allocations or []:
                batch_id = allocation.resolved_batch_id
                if batch_id is None:
                    continue
                batch_key = identity_key(batch_id)
                batch = allocation.batch

                aggregated_asset = grouped.get(asset_key)
                if aggregated_asset is None:
                    aggregated_asset = AggregatedAsset(
                        asset_id=asset.id,
                        asset_name=asset.asset_name,
                        asset_number=asset.asset_number,
                    )
                    grouped[asset_key] = aggregated_asset
                    batches_by_asset[asset_key] = {}

                asset_batches = batches_by_asset[asset_key]
                aggregated_batch = asset_batches.get(batch_key)
                if aggregated_batch is None:
                    aggregated_batch = AggregatedBatch(
                        batch_id=batch_id,
                        batch_name=batch.batch_name or f"Batch #{batch_id}",
                        purchase_date=batch.purchase_date,
                        purchase_price=batch.purchase_price,
                    )
                    asset_batches[batch_key] = aggregated_batch
                    aggregated_asset.batches.append(aggregated_batch)

                if allocation.id is not None:
                    item_id = str(allocation.id)
                else:
                    item_id = f"{assignment.id}_{batch_id}_{len(aggregated_batch.items)}"

                aggregated_batch.items.append(
                    Item(
                        item_id=item_id,
                        serial_number=allocation.serial_number,
                        assignment_date=allocation.assignment_date or assignment.assignment_date,
                        value=batch.purchase_price,
                    )
                )
                total += batch.purchase_price

    return StationAggregate(grouped_assets=list(grouped.values()), total_value=total)


def flatten_report_rows(grouped_assets: Iterable[AggregatedAsset]) -> list[ReportRow]:
    """One row per Item, in hierarchy order. Row values sum to the total."""
    rows = []
    for asset in grouped_assets:
        for batch in asset.batches:
            for item in batch.items:
                rows.append(
                    ReportRow(
                        asset_name=asset.asset_name,
                        asset_number=asset.asset_number,
                        batch_name=batch.batch_name,
                        purchase_date=batch.purchase_date,
                        serial_number=item.serial_number,
                        assignment_date=item.assignment_date,
                        value=item.value,
                    )
                )
    return rows
