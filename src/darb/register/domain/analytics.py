"""Dashboard metrics for the asset register.

Pure computations over already-fetched backend data. The use case layer
does the fetching (including the per-employee assignment fan-out) and hands
plain entities to ``compute_dashboard``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Sequence

from .aggregation import identity_key
from .entities import ZERO, Asset, Batch, Department, Employee, Station

TOP_ASSETS_LIMIT = 10
OTHERS_THRESHOLD_PERCENT = 5


@dataclass
class ChartEntry:
    """One bar or slice in a dashboard chart.

    ``value`` is money for value charts and a unit count for item charts.
    An "Others" entry carries the entries it folded in ``others``.
    """

    name: str
    value: Decimal
    id: Any = None
    employee_id: Optional[str] = None
    others: list["ChartEntry"] = field(default_factory=list)

    @property
    def is_others(self) -> bool:
        return bool(self.others)


@dataclass
class DashboardMetrics:
    total_assets: int = 0
    total_value: Decimal = ZERO
    total_stations: int = 0
    total_batch_items: int = 0
    total_assigned_items: int = 0
    total_station_assigned_value: Decimal = ZERO
    total_employee_assigned_value: Decimal = ZERO
    top_stations_by_value: list[ChartEntry] = field(default_factory=list)
    top_stations_by_items: list[ChartEntry] = field(default_factory=list)
    top_employees_by_value: list[ChartEntry] = field(default_factory=list)
    top_employees_by_items: list[ChartEntry] = field(default_factory=list)
    top_assets_by_items: list[ChartEntry] = field(default_factory=list)
    top_assets_by_value: list[ChartEntry] = field(default_factory=list)
    category_distribution: list[ChartEntry] = field(default_factory=list)
    department_value: list[ChartEntry] = field(default_factory=list)
    department_employee_count: list[ChartEntry] = field(default_factory=list)

    @property
    def total_assigned_value(self) -> Decimal:
        return self.total_station_assigned_value + self.total_employee_assigned_value


def group_small_items(
    entries: Sequence[ChartEntry],
    threshold_percent: float = OTHERS_THRESHOLD_PERCENT,
) -> list[ChartEntry]:
    """Fold entries below threshold_percent of the total into one "Others (n)".

    Entries at or above the threshold keep their order. Nothing is folded
    when the total is zero.

    >>> group_small_items([ChartEntry("A", Decimal(96)), ChartEntry("B", Decimal(4))])[-1].name
    'Others (1)'
    """
    total = sum((entry.value for entry in entries), ZERO)
    if not entries or total == 0:
        return list(entries)

    threshold = total * Decimal(str(threshold_percent)) / 100
    main = [entry for entry in entries if entry.value >= threshold]
    small = [entry for entry in entries if entry.value < threshold]
    if not small:
        return main

    others = ChartEntry(
        name=f"Others ({len(small)})",
        value=sum((entry.value for entry in small), ZERO),
        others=small,
    )
    return main + [others]


def _by_value(entries: Iterable[ChartEntry]) -> list[ChartEntry]:
    return sorted(entries, key=lambda entry: entry.value, reverse=True)


def compute_dashboard(
    assets: Sequence[Asset],
    stations: Sequence[Station],
    employees: Sequence[Employee] = (),
    departments: Sequence[Department] = (),
    employee_batches: Optional[Mapping[Any, Sequence[Batch]]] = None,
) -> DashboardMetrics:
    """Compute every dashboard figure from fetched register data.

    Args:
        assets: All assets, with assignments and batches
        stations: All stations, used for names and the station count
        employees: All employees, used for names
        departments: All departments
        employee_batches: Employee id -> batches assigned to that employee
    """
    employee_batches = employee_batches or {}
    metrics = DashboardMetrics(
        total_assets=len(assets),
        total_value=sum((asset.total_value for asset in assets), ZERO),
        total_stations=len(stations),
        total_batch_items=sum(batch.quantity for asset in assets for batch in asset.batches),
    )

    # Allocations with a serial are assigned units; employee holdings come pre-counted
    for asset in assets:
        for assignment in asset.assignments:
            for allocation in assignment.batch_allocations:
                if allocation.serial_number:
                    metrics.total_assigned_items += allocation.quantity or 1
        metrics.total_assigned_items += asset.total_assigned_to_employees

    station_values: dict[Any, Decimal] = {}
    station_items: dict[Any, int] = {}
    station_ids: dict[Any, Any] = {}
    for asset in assets:
        for assignment in asset.assignments:
            key = identity_key(assignment.station_id)
            station_ids.setdefault(key, assignment.station_id)
            station_values[key] = station_values.get(key, ZERO) + assignment.assignment_value
            if assignment.batch_allocations:
                items = sum(allocation.quantity or 1 for allocation in assignment.batch_allocations)
            else:
                items = assignment.quantity
            station_items[key] = station_items.get(key, 0) + items

    station_names = {identity_key(station.id): station.name for station in stations}

    def station_entry(key: Any, value: Decimal) -> ChartEntry:
        station_id = station_ids[key]
        name = station_names.get(key) or f"Station #{station_id}"
        return ChartEntry(name=name, value=value, id=station_id)

    metrics.top_stations_by_value = _by_value(
        station_entry(key, value) for key, value in station_values.items()
    )
    metrics.top_stations_by_items = _by_value(
        station_entry(key, Decimal(items)) for key, items in station_items.items()
    )
    metrics.total_station_assigned_value = sum(station_values.values(), ZERO)

    employees_by_key = {identity_key(employee.id): employee for employee in employees}
    employee_values: dict[Any, Decimal] = {}
    employee_items: dict[Any, int] = {}
    for employee_id, batches in employee_batches.items():
        priced = [batch for batch in batches if batch.purchase_price]
        if not priced:
            continue
        employee_values[employee_id] = sum((batch.purchase_price for batch in priced), ZERO)
        employee_items[employee_id] = len(priced)

    def employee_entry(employee_id: Any, value: Decimal) -> ChartEntry:
        employee = employees_by_key.get(identity_key(employee_id))
        return ChartEntry(
            name=(employee.name if employee else None) or f"Employee #{employee_id}",
            value=value,
            id=employee_id,
            employee_id=employee.employee_id if employee else None,
        )

    metrics.top_employees_by_value = _by_value(
        employee_entry(employee_id, value) for employee_id, value in employee_values.items()
    )
    metrics.top_employees_by_items = _by_value(
        employee_entry(employee_id, Decimal(items)) for employee_id, items in employee_items.items()
    )
    metrics.total_employee_assigned_value = sum(employee_values.values(), ZERO)

    asset_items = [
        ChartEntry(
            name=asset.asset_name or f"Asset #{asset.id}",
            value=Decimal(sum(batch.quantity for batch in asset.batches)),
            id=asset.id,
        )
        for asset in assets
    ]
    metrics.top_assets_by_items = _by_value(e for e in asset_items if e.value > 0)[:TOP_ASSETS_LIMIT]
    metrics.top_assets_by_value = _by_value(
        ChartEntry(name=asset.asset_name or f"Asset #{asset.id}", value=asset.total_value, id=asset.id)
        for asset in assets
        if asset.total_value > 0
    )[:TOP_ASSETS_LIMIT]

    categories: dict[str, int] = {}
    for asset in assets:
        name = asset.category_name or "Uncategorized"
        categories[name] = categories.get(name, 0) + 1
    metrics.category_distribution = _by_value(
        ChartEntry(name=name, value=Decimal(count)) for name, count in categories.items()
    )

    metrics.department_value = _by_value(
        ChartEntry(name=dept.name, value=dept.total_asset_value, id=dept.id) for dept in departments
    )
    metrics.department_employee_count = _by_value(
        ChartEntry(name=dept.name, value=Decimal(dept.employee_count), id=dept.id)
        for dept in departments
    )

    return metrics
