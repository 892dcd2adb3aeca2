"""
API Records

Dataclasses for the dataset and example records returned by the EvalHub API.
Unknown server fields are preserved in `extra`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def format_timestamp(value: datetime) -> str:
    """Serialize to canonical ISO-8601 UTC, e.g. '2023-05-01T12:00:00.000Z'.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string from the API; returns None for empty input."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Dataset:
    """A named collection of examples owned by a tenant."""

    id: str
    name: str
    description: str = ""
    tenant_id: Optional[str] = None
    created_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        known = {"id", "name", "description", "tenant_id", "created_at"}
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            tenant_id=data.get("tenant_id"),
            created_at=parse_timestamp(data.get("created_at")),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class Example:
    """One labeled input/output record belonging to a dataset."""

    id: str
    dataset_id: str
    inputs: Dict[str, Any] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Example":
        known = {"id", "dataset_id", "inputs", "outputs", "created_at"}
        return cls(
            id=str(data["id"]),
            dataset_id=str(data.get("dataset_id", "")),
            inputs=dict(data.get("inputs") or {}),
            outputs=dict(data.get("outputs") or {}),
            created_at=parse_timestamp(data.get("created_at")),
            extra={k: v for k, v in data.items() if k not in known},
        )
