"""
Exportable documents.

A document describes its content once (dictionary form, tabular sections
and an optional checklist); ``ExportFormatter`` decides how to render it.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from ..models.activity import ActivityLog
from ..models.base import isoformat
from ..models.shopping_list import ShoppingList, ShoppingListItem
from ..models.snapshot import BackupSnapshot

Row = List[Any]


@dataclass
class ExportSection:
    """A titled table."""
    name: Optional[str]
    headers: List[str]
    rows: List[Row] = field(default_factory=list)


@dataclass
class ChecklistItem:
    label: str
    quantity: int = 1
    amount: Optional[float] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None
    done_on: Optional[date] = None


@dataclass
class Checklist:
    """Pending and completed items with a total for each group."""
    pending: List[ChecklistItem] = field(default_factory=list)
    done: List[ChecklistItem] = field(default_factory=list)
    pending_heading: str = "TO BUY"
    done_heading: str = "PURCHASED"
    pending_total_label: str = "Total Estimated"
    done_total_label: str = "Total Spent"

    @property
    def pending_total(self) -> float:
        return sum(item.amount or 0 for item in self.pending)

    @property
    def done_total(self) -> float:
        return sum(item.amount or 0 for item in self.done)


def safe_filename(value: str) -> str:
    """Make a value usable as a download file name."""
    cleaned = re.sub(r"[^\w\- ]+", "_", value, flags=re.ASCII).strip()
    return cleaned or "export"


class ExportDocument(ABC):
    """Something that can be exported as JSON, CSV or text."""

    @property
    @abstractmethod
    def title(self) -> str:
        pass

    @property
    @abstractmethod
    def filename_stem(self) -> str:
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def sections(self) -> List[ExportSection]:
        pass

    def header_lines(self) -> List[str]:
        """Lines printed under the title in text exports."""
        return []

    def csv_preamble(self) -> List[Row]:
        """Rows written before the first CSV section."""
        return [[self.title], [""]]

    def checklist(self) -> Optional[Checklist]:
        return None


class ActivityLogDocument(ExportDocument):
    """Yarn, patterns and projects added over a date range."""

    def __init__(self, log: ActivityLog):
        self.log = log

    @property
    def title(self) -> str:
        return "Activity Log Export"

    @property
    def filename_stem(self) -> str:
        return "activity-log"

    def to_dict(self) -> Dict[str, Any]:
        return self.log.to_dict()

    def header_lines(self) -> List[str]:
        period = self.to_dict()["period"]
        return [
            f"Export Date: {isoformat(self.log.export_date)}",
            f"User: {self.log.user}",
            f"Period: {period['start']} to {period['end']}",
        ]

    def csv_preamble(self) -> List[Row]:
        return [
            [self.title],
            [f"Export Date: {isoformat(self.log.export_date)}"],
            [f"User: {self.log.user}"],
            [""],
        ]

    def sections(self) -> List[ExportSection]:
        return [
            ExportSection(
                "YARN INVENTORY",
                ["Date", "Brand", "Line", "Colorway", "Skeins", "Yardage"],
                [
                    [y["date"], y["brand"], y["line"], y["colorway"], y["skeins"], y["yardage"]]
                    for y in self.log.yarn
                ],
            ),
            ExportSection(
                "PATTERNS",
                ["Date", "Title", "Designer", "Craft Type", "Difficulty"],
                [
                    [p["date"], p["title"], p["designer"], p["craft_type"], p["difficulty"]]
                    for p in self.log.patterns
                ],
            ),
            ExportSection(
                "PROJECTS",
                ["Date", "Name", "Pattern", "Status", "Start Date", "Completion Date"],
                [
                    [p["date"], p["name"], p["pattern"], p["status"], p["startDate"], p["completionDate"]]
                    for p in self.log.projects
                ],
            ),
        ]


class ShoppingListDocument(ExportDocument):
    """A shopping list rendered as a checklist."""

    def __init__(self, shopping_list: ShoppingList):
        self.shopping_list = shopping_list

    @property
    def title(self) -> str:
        return self.shopping_list.name

    @property
    def filename_stem(self) -> str:
        return safe_filename(self.shopping_list.name)

    @property
    def created(self) -> str:
        return self.shopping_list.created_at.date().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return self.shopping_list.to_dict()

    def header_lines(self) -> List[str]:
        return [self.shopping_list.description or "", f"Created: {self.created}"]

    def csv_preamble(self) -> List[Row]:
        return [["Shopping List", self.shopping_list.name], ["Created", self.created], [""]]

    @staticmethod
    def _item_columns(item: ShoppingListItem):
        if item.has_yarn_line:
            name = " ".join(p for p in (item.brand_name, item.line_name) if p)
            return name, item.colorway
        if item.pattern_title is not None:
            return item.pattern_title, item.pattern_designer
        return item.item_name, None

    def sections(self) -> List[ExportSection]:
        rows = []
        for item in self.shopping_list.items:
            name, details = self._item_columns(item)
            rows.append([
                "Purchased" if item.purchased else "To Buy",
                item.item_type.value,
                item.quantity,
                name,
                details,
                item.estimated_price,
                item.actual_price,
                item.vendor,
                item.notes,
            ])
        return [ExportSection(
            None,
            ["Status", "Type", "Quantity", "Item", "Details", "Est. Price", "Actual Price", "Vendor", "Notes"],
            rows,
        )]

    def checklist(self) -> Checklist:
        pending = [
            ChecklistItem(
                label=item.display_name,
                quantity=item.quantity,
                amount=item.estimated_total if item.estimated_price else None,
                vendor=item.vendor,
                notes=item.notes,
            )
            for item in self.shopping_list.pending_items
        ]
        done = [
            ChecklistItem(
                label=item.display_name,
                quantity=item.quantity,
                amount=item.actual_total if item.actual_price else None,
                done_on=item.purchase_date,
            )
            for item in self.shopping_list.purchased_items
        ]
        return Checklist(pending=pending, done=done)


class SnapshotDocument(ExportDocument):
    """A backup snapshot as a readable report."""

    def __init__(self, snapshot: BackupSnapshot):
        self.snapshot = snapshot

    @property
    def title(self) -> str:
        return "Backup"

    @property
    def filename_stem(self) -> str:
        return self.snapshot.filename[: -len(".json")]

    def to_dict(self) -> Dict[str, Any]:
        return self.snapshot.to_dict()

    def header_lines(self) -> List[str]:
        return [f"Backup Date: {isoformat(self.snapshot.backup_date)}"]

    def csv_preamble(self) -> List[Row]:
        return [
            [self.title, self.snapshot.user_id],
            ["Backup Date", isoformat(self.snapshot.backup_date)],
            [""],
        ]

    def sections(self) -> List[ExportSection]:
        s = self.snapshot
        return [
            ExportSection(
                "YARN INVENTORY",
                ["ID", "Brand", "Line", "Colorway", "Skeins", "Remaining", "Yardage", "Price", "Created"],
                [
                    [y.id, y.brand_name, y.line_name, y.colorway, y.skeins_total,
                     y.skeins_remaining, y.total_yardage, y.purchase_price, isoformat(y.created_at)]
                    for y in s.yarn_inventory
                ],
            ),
            ExportSection(
                "PATTERNS",
                ["ID", "Title", "Designer", "Craft Type", "Difficulty", "Drive File", "Created"],
                [
                    [p.id, p.title, p.designer_name, p.craft_type, p.difficulty_level,
                     p.drive_file_id, isoformat(p.created_at)]
                    for p in s.patterns
                ],
            ),
            ExportSection(
                "PROJECTS",
                ["ID", "Name", "Pattern", "Status", "Start Date", "Completion Date", "Hours", "Created"],
                [
                    [p.id, p.project_name, p.pattern_title, p.status.value,
                     p.start_date.isoformat() if p.start_date else None,
                     isoformat(p.completion_date), p.total_hours_worked, isoformat(p.created_at)]
                    for p in s.projects
                ],
            ),
        ]
