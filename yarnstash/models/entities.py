"""
Domain entity read projections.

Each projection carries the owning ``user_id``, a ``created_at`` timestamp
and the display fields resolved through joins (brand, line, designer and
pattern names). Joined fields are explicit ``Optional`` values; a missing
yarn line or designer yields ``None`` rather than a default string.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .base import isoformat, parse_datetime


class ProjectStatus(str, Enum):
    QUEUED = "queued"
    ACTIVE = "active"
    COMPLETED = "completed"
    FROGGED = "frogged"
    HIBERNATING = "hibernating"


class ProgressType(str, Enum):
    ROWS_COMPLETED = "rows_completed"
    PERCENTAGE = "percentage"
    MILESTONE = "milestone"


def _date_str(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class YarnStock:
    """A yarn inventory item with its brand and line resolved."""
    id: int
    user_id: int
    colorway: str
    created_at: datetime
    yarn_line_id: Optional[int] = None
    brand_name: Optional[str] = None
    line_name: Optional[str] = None
    weight_category: Optional[str] = None
    color_family: Optional[str] = None
    dye_lot: Optional[str] = None
    skeins_total: float = 1
    skeins_remaining: float = 1
    total_yardage: Optional[int] = None
    remaining_yardage: Optional[int] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[float] = None
    vendor: Optional[str] = None
    storage_location: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "yarn_line_id": self.yarn_line_id,
            "brand_name": self.brand_name,
            "line_name": self.line_name,
            "weight_category": self.weight_category,
            "colorway": self.colorway,
            "color_family": self.color_family,
            "dye_lot": self.dye_lot,
            "skeins_total": self.skeins_total,
            "skeins_remaining": self.skeins_remaining,
            "total_yardage": self.total_yardage,
            "remaining_yardage": self.remaining_yardage,
            "purchase_date": _date_str(self.purchase_date),
            "purchase_price": self.purchase_price,
            "vendor": self.vendor,
            "storage_location": self.storage_location,
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "YarnStock":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            colorway=data["colorway"],
            created_at=parse_datetime(data["created_at"]),
            yarn_line_id=data.get("yarn_line_id"),
            brand_name=data.get("brand_name"),
            line_name=data.get("line_name"),
            weight_category=data.get("weight_category"),
            color_family=data.get("color_family"),
            dye_lot=data.get("dye_lot"),
            skeins_total=data.get("skeins_total", 1),
            skeins_remaining=data.get("skeins_remaining", 1),
            total_yardage=data.get("total_yardage"),
            remaining_yardage=data.get("remaining_yardage"),
            purchase_date=_parse_date(data.get("purchase_date")),
            purchase_price=data.get("purchase_price"),
            vendor=data.get("vendor"),
            storage_location=data.get("storage_location"),
            notes=data.get("notes"),
        )


@dataclass
class Pattern:
    """A pattern with its designer resolved."""
    id: int
    user_id: int
    title: str
    created_at: datetime
    designer_id: Optional[int] = None
    designer_name: Optional[str] = None
    craft_type: Optional[str] = None
    difficulty_level: Optional[str] = None
    yardage_required: Optional[int] = None
    original_filename: Optional[str] = None
    file_type: Optional[str] = None
    file_size_bytes: Optional[int] = None
    local_file_path: Optional[str] = None
    drive_file_id: Optional[str] = None
    thumbnail_drive_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "designer_id": self.designer_id,
            "designer_name": self.designer_name,
            "craft_type": self.craft_type,
            "difficulty_level": self.difficulty_level,
            "yardage_required": self.yardage_required,
            "original_filename": self.original_filename,
            "file_type": self.file_type,
            "file_size_bytes": self.file_size_bytes,
            "local_file_path": self.local_file_path,
            "drive_file_id": self.drive_file_id,
            "thumbnail_drive_id": self.thumbnail_drive_id,
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pattern":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            title=data["title"],
            created_at=parse_datetime(data["created_at"]),
            designer_id=data.get("designer_id"),
            designer_name=data.get("designer_name"),
            craft_type=data.get("craft_type"),
            difficulty_level=data.get("difficulty_level"),
            yardage_required=data.get("yardage_required"),
            original_filename=data.get("original_filename"),
            file_type=data.get("file_type"),
            file_size_bytes=data.get("file_size_bytes"),
            local_file_path=data.get("local_file_path"),
            drive_file_id=data.get("drive_file_id"),
            thumbnail_drive_id=data.get("thumbnail_drive_id"),
            notes=data.get("notes"),
        )


@dataclass
class Project:
    """A project with its pattern title and yarn usage resolved."""
    id: int
    user_id: int
    project_name: str
    created_at: datetime
    status: ProjectStatus = ProjectStatus.QUEUED
    pattern_id: Optional[int] = None
    pattern_title: Optional[str] = None
    start_date: Optional[date] = None
    target_completion_date: Optional[date] = None
    completion_date: Optional[datetime] = None
    total_hours_worked: float = 0
    notes: Optional[str] = None
    yarn_ids: List[int] = field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status == ProjectStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "project_name": self.project_name,
            "status": self.status.value,
            "pattern_id": self.pattern_id,
            "pattern_title": self.pattern_title,
            "start_date": _date_str(self.start_date),
            "target_completion_date": _date_str(self.target_completion_date),
            "completion_date": isoformat(self.completion_date),
            "total_hours_worked": self.total_hours_worked,
            "notes": self.notes,
            "yarn_ids": list(self.yarn_ids),
            "created_at": isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            project_name=data["project_name"],
            created_at=parse_datetime(data["created_at"]),
            status=ProjectStatus(data.get("status", "queued")),
            pattern_id=data.get("pattern_id"),
            pattern_title=data.get("pattern_title"),
            start_date=_parse_date(data.get("start_date")),
            target_completion_date=_parse_date(data.get("target_completion_date")),
            completion_date=parse_datetime(data.get("completion_date")),
            total_hours_worked=data.get("total_hours_worked", 0),
            notes=data.get("notes"),
            yarn_ids=list(data.get("yarn_ids", [])),
        )


@dataclass
class ProjectProgress:
    """A progress entry. Ownership is resolved through its project."""
    id: int
    project_id: int
    user_id: int
    created_at: datetime
    progress_type: ProgressType = ProgressType.MILESTONE
    progress_value: Optional[float] = None
    progress_date: Optional[date] = None
    project_name: Optional[str] = None
    hours_worked: Optional[float] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "user_id": self.user_id,
            "project_name": self.project_name,
            "progress_type": self.progress_type.value,
            "progress_value": self.progress_value,
            "progress_date": _date_str(self.progress_date),
            "hours_worked": self.hours_worked,
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
        }
