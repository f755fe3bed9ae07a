"""Domain entities for the asset register.

These are pure domain objects with no infrastructure dependencies. Backend
JSON is turned into these by the field mapper; every nested field the
backend may omit is an explicit Optional here.

Money is carried as Decimal throughout. Station identifiers on assignments
are kept exactly as the backend sent them (int or str) and are only
coerced when compared.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

ZERO = Decimal("0")


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class Role(str, Enum):
    """Account roles understood by the backend."""

    ADMIN = "admin"
    ASSIGNING_USER = "assigning_user"  # Can assign assets and add batches
    VIEWING_USER = "viewing_user"  # Read-only


# ============================================
# Register records (as stored by the backend)
# ============================================


@dataclass
class Batch:
    """A purchase record: units bought together at one price and date.

    Batches are referenced by allocations, never owned by them; several
    allocations across assets and stations may point at the same batch.
    """

    id: Any
    batch_name: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Decimal = ZERO
    quantity: int = 0
    remaining_quantity: int = 0
    remarks: Optional[str] = None
    asset_id: Any = None

    @property
    def label(self) -> str:
        """Display name, falling back to ``Batch #<id>``."""
        return self.batch_name or f"Batch #{self.id}"

    @property
    def total_value(self) -> Decimal:
        return self.purchase_price * self.quantity

    @property
    def remaining_value(self) -> Decimal:
        return self.purchase_price * self.remaining_quantity


@dataclass
class BatchAllocation:
    """Link between an assignment and a batch, optionally one serialized unit."""

    id: Any = None
    batch_id: Any = None
    batch: Optional[Batch] = None
    serial_number: Optional[str] = None
    assignment_date: Optional[date] = None
    quantity: Optional[int] = None

    @property
    def resolved_batch_id(self) -> Any:
        """Batch identity, or None when the batch cannot be resolved.

        An allocation without an embedded batch object is unresolvable even
        if it carries a ``batch_id``: there is no price or date to report.
        """
        if self.batch is None:
            return None
        if self.batch.id is not None:
            return self.batch.id
        return self.batch_id


@dataclass
class Assignment:
    """An asset placed at one station, with its batch allocations."""

    station_id: Any
    id: Any = None
    station_name: Optional[str] = None
    quantity: int = 0
    assignment_value: Decimal = ZERO
    assignment_date: Optional[date] = None
    batch_allocations: list[BatchAllocation] = field(default_factory=list)


@dataclass
class Asset:
    """A tracked physical asset with its assignments and purchase batches."""

    id: Any
    asset_name: str
    asset_number: Optional[str] = None
    serial_number: Optional[str] = None
    barcode: Optional[str] = None
    quantity: Optional[int] = None
    units: Optional[str] = None
    remarks: Optional[str] = None
    category_name: Optional[str] = None
    asset_value: Decimal = ZERO
    total_value: Decimal = ZERO
    total_assigned_to_employees: int = 0
    assignments: list[Assignment] = field(default_factory=list)
    batches: list[Batch] = field(default_factory=list)


@dataclass
class Station:
    """A station (pump) to which assets are assigned."""

    id: Any
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None
    contact_number: Optional[str] = None
    remarks: Optional[str] = None
    asset_count: int = 0
    total_asset_value: Decimal = ZERO

    @property
    def display_name(self) -> str:
        return self.name or f"Station #{self.id}"


@dataclass
class Department:
    id: Any
    name: str
    manager: Optional[str] = None
    employee_count: int = 0
    total_asset_value: Decimal = ZERO


@dataclass
class Employee:
    id: Any
    name: str
    employee_id: Optional[str] = None


@dataclass
class Account:
    """A login account on the backend."""

    id: Any
    username: str
    role: Optional[Role] = None
    created_at: Optional[datetime] = None


@dataclass
class CurrentUser:
    """The authenticated caller, as reported by the backend's /api/me.

    Permission flags mirror the backend: any known role can view, admins
    and assigning users can assign, only admins can administer.
    """

    authenticated: bool
    username: Optional[str] = None
    role: Optional[Role] = None

    @property
    def can_view(self) -> bool:
        return self.authenticated and self.role is not None

    @property
    def can_assign(self) -> bool:
        return self.authenticated and self.role in (Role.ADMIN, Role.ASSIGNING_USER)

    @property
    def is_admin(self) -> bool:
        return self.authenticated and self.role == Role.ADMIN


# ============================================
# Aggregated report structures (derived, never persisted)
# ============================================


@dataclass
class Item:
    """One physical unit in a station report."""

    item_id: str
    serial_number: Optional[str] = None
    assignment_date: Optional[date] = None
    value: Decimal = ZERO


@dataclass
class AggregatedBatch:
    batch_id: Any
    batch_name: str
    purchase_date: Optional[date] = None
    purchase_price: Decimal = ZERO
    items: list[Item] = field(default_factory=list)


@dataclass
class AggregatedAsset:
    asset_id: Any
    asset_name: str
    asset_number: Optional[str] = None
    batches: list[AggregatedBatch] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(len(batch.items) for batch in self.batches)


@dataclass
class ReportRow:
    """Flat projection of one Item, as printed and exported."""

    asset_name: str
    asset_number: Optional[str]
    batch_name: str
    purchase_date: Optional[date]
    serial_number: Optional[str]
    assignment_date: Optional[date]
    value: Decimal

    def to_dict(self) -> dict:
        return {
            "asset_name": self.asset_name,
            "asset_number": self.asset_number,
            "batch_name": self.batch_name,
            "purchase_date": _iso(self.purchase_date),
            "serial_number": self.serial_number,
            "assignment_date": _iso(self.assignment_date),
            "value": str(self.value),
        }


@dataclass
class StationAggregate:
    """Asset -> Batch -> Item hierarchy for one station, with its total value."""

    grouped_assets: list[AggregatedAsset] = field(default_factory=list)
    total_value: Decimal = ZERO

    @property
    def item_count(self) -> int:
        return sum(asset.item_count for asset in self.grouped_assets)

    @property
    def is_empty(self) -> bool:
        return not self.grouped_assets


@dataclass
class StationReport:
    """Everything a station report view or print needs, built per request."""

    station_id: Any
    aggregate: StationAggregate
    rows: list[ReportRow] = field(default_factory=list)
    station: Optional[Station] = None
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def grouped_assets(self) -> list[AggregatedAsset]:
        return self.aggregate.grouped_assets

    @property
    def total_value(self) -> Decimal:
        return self.aggregate.total_value

    @property
    def title(self) -> str:
        if self.station:
            return self.station.display_name
        return f"Station #{self.station_id}"


# ============================================
# Write payloads
# ============================================


@dataclass
class StationUpdate:
    name: str
    location: Optional[str] = None
    manager: Optional[str] = None
    contact_number: Optional[str] = None
    remarks: Optional[str] = None

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "location": self.location,
            "manager": self.manager,
            "contact_number": self.contact_number,
            "remarks": self.remarks,
        }


@dataclass
class BatchDraft:
    """A new purchase batch for an asset, before it is sent to the backend."""

    purchase_price: Decimal
    quantity: int
    purchase_date: Optional[date] = None
    batch_name: Optional[str] = None
    remarks: Optional[str] = None

    def __post_init__(self):
        # Blank names are stored as null
        if self.batch_name is not None:
            self.batch_name = self.batch_name.strip() or None
        if self.remarks is not None and not self.remarks.strip():
            self.remarks = None

    def to_payload(self) -> dict:
        payload = {
            "purchase_price": float(self.purchase_price),
            "quantity": self.quantity,
            "batch_name": self.batch_name,
            "remarks": self.remarks,
        }
        if self.purchase_date:
            payload["purchase_date"] = datetime(
                self.purchase_date.year, self.purchase_date.month, self.purchase_date.day
            ).isoformat() + "Z"
        return payload


@dataclass
class AccountDraft:
    username: str
    password: str
    role: Role = Role.VIEWING_USER

    def to_payload(self) -> dict:
        return {"username": self.username, "password": self.password, "role": self.role.value}
