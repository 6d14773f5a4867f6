"""Data models for the finance tracker domain."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

__all__ = ["Category", "Expense", "Income", "isoformat_utc", "parse_datetime", "utcnow"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="microseconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_datetime(value: Optional[str]) -> Optional[datetime]:
    return parse_datetime(value) if value else None


def _optional_isoformat(value: Optional[datetime]) -> Optional[str]:
    return isoformat_utc(value) if value is not None else None


@dataclass(frozen=True)
class Category:
    id: Optional[str]
    name: str
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(id=data["id"], name=data["name"], color=data.get("color"))


@dataclass(frozen=True)
class Expense:
    id: Optional[str]
    amount: Decimal
    date: date
    category_id: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self, category: Optional[Category] = None) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives.

        ``category`` is the resolved display reference; it is only attached
        to the output and never stored on the expense itself.
        """
        payload = {
            "id": self.id,
            "amount": f"{self.amount:.2f}",
            "date": self.date.isoformat(),
            "categoryId": self.category_id,
            "description": self.description,
            "createdAt": _optional_isoformat(self.created_at),
            "updatedAt": _optional_isoformat(self.updated_at),
        }
        if category is not None:
            payload["category"] = category.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data."""
        return cls(
            id=data["id"],
            amount=Decimal(str(data["amount"])),
            date=date.fromisoformat(data["date"]),
            category_id=data["categoryId"],
            description=data.get("description"),
            created_at=_optional_datetime(data.get("createdAt")),
            updated_at=_optional_datetime(data.get("updatedAt")),
        )


@dataclass(frozen=True)
class Income:
    id: Optional[str]
    amount: Decimal
    date: date
    source: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the income to JSON-friendly natives."""
        return {
            "id": self.id,
            "amount": f"{self.amount:.2f}",
            "date": self.date.isoformat(),
            "source": self.source,
            "description": self.description,
            "createdAt": _optional_isoformat(self.created_at),
            "updatedAt": _optional_isoformat(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Income":
        """Hydrate an Income from JSON-native data."""
        return cls(
            id=data["id"],
            amount=Decimal(str(data["amount"])),
            date=date.fromisoformat(data["date"]),
            source=data["source"],
            description=data.get("description"),
            created_at=_optional_datetime(data.get("createdAt")),
            updated_at=_optional_datetime(data.get("updatedAt")),
        )
