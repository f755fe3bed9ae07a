"""Derived register views: batch valuation and station-scoped assets."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from .aggregation import coerce_identifier
from .entities import ZERO, Asset, Assignment, Batch


@dataclass
class BatchSummary:
    """Quantity and value totals over all purchase batches of one asset."""

    asset_id: Any
    batches: list[Batch] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(batch.quantity for batch in self.batches)

    @property
    def remaining_quantity(self) -> int:
        return sum(batch.remaining_quantity for batch in self.batches)

    @property
    def assigned_quantity(self) -> int:
        return self.total_quantity - self.remaining_quantity

    @property
    def total_value(self) -> Decimal:
        return sum((batch.total_value for batch in self.batches), ZERO)

    @property
    def remaining_value(self) -> Decimal:
        return sum((batch.remaining_value for batch in self.batches), ZERO)

    @property
    def assigned_value(self) -> Decimal:
        return self.total_value - self.remaining_value


@dataclass
class StationAssetView:
    """An asset seen from one station: only that station's assignments count.

    ``remaining_quantity`` and ``remaining_value`` are None when the asset
    has no recorded quantity.
    """

    asset: Asset
    assignments: list[Assignment]
    total_assigned: int
    total_assigned_value: Decimal
    remaining_quantity: Optional[int]
    remaining_value: Optional[Decimal]


def summarize_batches(asset_id: Any, batches: Iterable[Batch]) -> BatchSummary:
    return BatchSummary(asset_id=asset_id, batches=list(batches))


def scope_assets_to_station(
    assets: Sequence[Asset], station_id: Any
) -> tuple[list[StationAssetView], Decimal]:
    """Restrict assets to the assignments of one station.

    Returns:
        (views, view_total) where views keeps input order, drops assets with
        no assignment at the station, and view_total sums the assigned values.
    """
    target = coerce_identifier(station_id)
    views = []
    for asset in assets:
        scoped = [
            assignment
            for assignment in asset.assignments
            if target is not None and coerce_identifier(assignment.station_id) == target
        ]
        if not scoped:
            continue

        total_assigned = sum(assignment.quantity for assignment in scoped)
        if asset.quantity is None:
            remaining = None
            remaining_value = None
        else:
            remaining = max(asset.quantity - total_assigned, 0)
            remaining_value = asset.asset_value * remaining

        views.append(
            StationAssetView(
                asset=asset,
                assignments=scoped,
                total_assigned=total_assigned,
                total_assigned_value=sum(
                    (assignment.assignment_value for assignment in scoped), ZERO
                ),
                remaining_quantity=remaining,
                remaining_value=remaining_value,
            )
        )

    view_total = sum((view.total_assigned_value for view in views), ZERO)
    return views, view_total
