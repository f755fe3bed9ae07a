"""Field mapper adapter for turning backend JSON into register entities.

The backend's payloads are loosely shaped: nested objects may be missing or
null, ids arrive as ints or strings, prices as numbers or numeric strings,
and some keys are camelCase while others are snake_case. All of that is
absorbed here so the domain only ever sees typed dataclasses.

Nested anomalies never raise. A top-level record without an ``id`` cannot be
referenced and is skipped with a debug log.
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..domain.entities import (
    ZERO,
    Account,
    Asset,
    Assignment,
    Batch,
    BatchAllocation,
    CurrentUser,
    Department,
    Employee,
    Role,
    Station,
)

logger = logging.getLogger(__name__)


def _first(raw: dict, *keys: str) -> Any:
    """First non-None value among keys (snake_case and camelCase variants)."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


class RegisterFieldMapper:
    """Maps backend JSON dictionaries to register domain entities.

    This class handles:
    - Nested object extraction (assignment -> allocations -> batch)
    - Money parsing to Decimal (numbers or numeric strings)
    - Date parsing (``YYYY-MM-DD`` or ISO 8601 with a 'Z' suffix)
    - Role parsing for accounts and the current user
    """

    # ----------------------------------------
    # Assets
    # ----------------------------------------

    def map_assets(self, raw_list: Any) -> list[Asset]:
        return self._map_many(raw_list, self.map_asset, "asset")

    def map_asset(self, raw: dict[str, Any]) -> Asset:
        category = raw.get("category") if isinstance(raw.get("category"), dict) else {}
        return Asset(
            id=raw["id"],
            asset_name=self._to_text(raw.get("asset_name")) or "",
            asset_number=self._to_text(raw.get("asset_number")),
            serial_number=self._to_text(raw.get("serial_number")),
            barcode=self._to_text(raw.get("barcode")),
            quantity=self._to_int(raw.get("quantity"), default=None),
            units=self._to_text(raw.get("units")),
            remarks=self._to_text(raw.get("remarks")),
            category_name=self._to_text(
                _first(raw, "categoryName", "category_name") or category.get("name")
            ),
            asset_value=self._to_decimal(raw.get("asset_value")),
            total_value=self._to_decimal(_first(raw, "totalValue", "total_value")),
            total_assigned_to_employees=self._to_int(
                _first(raw, "totalAssignedToEmployees", "total_assigned_to_employees")
            ),
            assignments=[
                self.map_assignment(a) for a in _as_list(raw.get("assignments")) if isinstance(a, dict)
            ],
            batches=[
                self.map_batch(b) for b in _as_list(raw.get("batches")) if isinstance(b, dict)
            ],
        )

    def map_assignment(self, raw: dict[str, Any]) -> Assignment:
        return Assignment(
            id=raw.get("id"),
            station_id=_first(raw, "pump_id", "station_id"),
            station_name=self._to_text(_first(raw, "pump_name", "station_name")),
            quantity=self._to_int(raw.get("quantity")),
            assignment_value=self._to_decimal(raw.get("assignment_value")),
            assignment_date=self._parse_date(raw.get("assignment_date")),
            batch_allocations=[
                self.map_allocation(a)
                for a in _as_list(raw.get("batch_allocations"))
                if isinstance(a, dict)
            ],
        )

    def map_allocation(self, raw: dict[str, Any]) -> BatchAllocation:
        batch_raw = raw.get("batch")
        return BatchAllocation(
            id=raw.get("id"),
            batch_id=raw.get("batch_id"),
            batch=self.map_batch(batch_raw) if isinstance(batch_raw, dict) else None,
            serial_number=self._to_text(raw.get("serial_number")) or None,
            assignment_date=self._parse_date(raw.get("assignment_date")),
            quantity=self._to_int(raw.get("quantity"), default=None),
        )

    # ----------------------------------------
    # Batches
    # ----------------------------------------

    def map_batches(self, raw_list: Any) -> list[Batch]:
        return self._map_many(raw_list, self.map_batch, "batch")

    def map_batch(self, raw: dict[str, Any]) -> Batch:
        # Allocation payloads embed batches whose id may be absent
        return Batch(
            id=raw.get("id"),
            batch_name=self._to_text(raw.get("batch_name")) or None,
            purchase_date=self._parse_date(raw.get("purchase_date")),
            purchase_price=self._to_decimal(raw.get("purchase_price")),
            quantity=self._to_int(raw.get("quantity")),
            remaining_quantity=self._to_int(raw.get("remaining_quantity")),
            remarks=self._to_text(raw.get("remarks")),
            asset_id=raw.get("asset_id"),
        )

    def map_employee_batches(self, raw_list: Any) -> list[Batch]:
        """Batches from /api/employees/<id>/assignments (one entry per unit)."""
        return [
            self.map_batch(entry["batch"])
            for entry in _as_list(raw_list)
            if isinstance(entry, dict) and isinstance(entry.get("batch"), dict)
        ]

    # ----------------------------------------
    # Stations, departments, people
    # ----------------------------------------

    def map_stations(self, raw_list: Any) -> list[Station]:
        return self._map_many(raw_list, self.map_station, "station")

    def map_station(self, raw: dict[str, Any]) -> Station:
        return Station(
            id=raw["id"],
            name=self._to_text(raw.get("name")) or "",
            location=self._to_text(raw.get("location")),
            manager=self._to_text(raw.get("manager")),
            contact_number=self._to_text(raw.get("contact_number")),
            remarks=self._to_text(raw.get("remarks")),
            asset_count=self._to_int(_first(raw, "assetCount", "asset_count")),
            total_asset_value=self._to_decimal(_first(raw, "totalAssetValue", "total_asset_value")),
        )

    def map_departments(self, raw_list: Any) -> list[Department]:
        return self._map_many(raw_list, self.map_department, "department")

    def map_department(self, raw: dict[str, Any]) -> Department:
        return Department(
            id=raw["id"],
            name=self._to_text(raw.get("name")) or "",
            manager=self._to_text(raw.get("manager")),
            employee_count=self._to_int(_first(raw, "employeeCount", "employee_count")),
            total_asset_value=self._to_decimal(_first(raw, "totalAssetValue", "total_asset_value")),
        )

    def map_employees(self, raw_list: Any) -> list[Employee]:
        return self._map_many(raw_list, self.map_employee, "employee")

    def map_employee(self, raw: dict[str, Any]) -> Employee:
        return Employee(
            id=raw["id"],
            name=self._to_text(raw.get("name")) or "",
            employee_id=self._to_text(raw.get("employee_id")),
        )

    def map_accounts(self, raw_list: Any) -> list[Account]:
        return self._map_many(raw_list, self.map_account, "account")

    def map_account(self, raw: dict[str, Any]) -> Account:
        return Account(
            id=raw["id"],
            username=self._to_text(raw.get("username")) or "",
            role=self._parse_role(raw.get("role")),
            created_at=self._parse_timestamp(raw.get("created_at")),
        )

    def map_current_user(self, raw: Any) -> CurrentUser:
        """Map the /api/me payload: ``{authenticated, user: {username, role}}``."""
        if not isinstance(raw, dict) or not raw.get("authenticated"):
            return CurrentUser(authenticated=False)
        user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
        return CurrentUser(
            authenticated=True,
            username=self._to_text(user.get("username")),
            role=self._parse_role(user.get("role")),
        )

    # ----------------------------------------
    # Helpers
    # ----------------------------------------

    @staticmethod
    def _map_many(raw_list: Any, mapper, kind: str) -> list:
        records = []
        for raw in _as_list(raw_list):
            if not isinstance(raw, dict) or raw.get("id") is None:
                logger.debug(f"Skipping {kind} record without id: {raw!r:.80}")
                continue
            records.append(mapper(raw))
        return records

    @staticmethod
    def _to_text(value: Any) -> Optional[str]:
        """Free text as str; ids and phone numbers often arrive as numbers."""
        if value is None:
            return None
        return str(value)

    @staticmethod
    def _to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
        """Parse money. Missing, boolean, or non-numeric values become default."""
        if value is None or isinstance(value, bool):
            return default
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return default
        return number if number.is_finite() else default

    @staticmethod
    def _to_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(Decimal(str(value).strip()))
        except (InvalidOperation, ValueError, OverflowError):
            return default

    @staticmethod
    def _parse_timestamp(iso_string: Any) -> Optional[datetime]:
        """Parse an ISO 8601 timestamp (may end with 'Z'); None if unparseable."""
        if not iso_string or not isinstance(iso_string, str):
            return None
        try:
            return datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
        except ValueError:
            return None

    @classmethod
    def _parse_date(cls, value: Any) -> Optional[date]:
        """Calendar date from ``YYYY-MM-DD`` or a full ISO timestamp."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        timestamp = cls._parse_timestamp(value)
        if timestamp:
            return timestamp.date()
        if isinstance(value, str) and len(value) >= 10:
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                return None
        return None

    @staticmethod
    def _parse_role(value: Any) -> Optional[Role]:
        try:
            return Role(value)
        except ValueError:
            return None
