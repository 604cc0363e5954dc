"""
Shopping list models consumed by the export formatter.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .base import isoformat


class ItemType(str, Enum):
    YARN = "yarn"
    PATTERN = "pattern"
    NOTION = "notion"
    TOOL = "tool"


@dataclass
class ShoppingListItem:
    id: int
    item_type: ItemType
    quantity: int = 1
    brand_name: Optional[str] = None
    line_name: Optional[str] = None
    pattern_title: Optional[str] = None
    pattern_designer: Optional[str] = None
    item_name: Optional[str] = None
    colorway: Optional[str] = None
    estimated_price: Optional[float] = None
    actual_price: Optional[float] = None
    vendor: Optional[str] = None
    notes: Optional[str] = None
    purchased: bool = False
    purchase_date: Optional[date] = None

    @property
    def has_yarn_line(self) -> bool:
        return self.line_name is not None

    @property
    def display_name(self) -> str:
        """Brand + line + colorway for yarn, title for patterns, free text otherwise."""
        if self.has_yarn_line:
            name = " ".join(p for p in (self.brand_name, self.line_name) if p)
            if self.colorway:
                name += f" - {self.colorway}"
            return name
        if self.pattern_title is not None:
            return f"Pattern: {self.pattern_title}"
        return self.item_name or ""

    @property
    def estimated_total(self) -> float:
        return (self.estimated_price or 0) * self.quantity

    @property
    def actual_total(self) -> float:
        return (self.actual_price or 0) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "item_type": self.item_type.value,
            "quantity": self.quantity,
            "brand_name": self.brand_name,
            "line_name": self.line_name,
            "pattern_title": self.pattern_title,
            "pattern_designer": self.pattern_designer,
            "item_name": self.item_name,
            "colorway": self.colorway,
            "estimated_price": self.estimated_price,
            "actual_price": self.actual_price,
            "vendor": self.vendor,
            "notes": self.notes,
            "purchased": self.purchased,
            "purchase_date": self.purchase_date.isoformat() if self.purchase_date else None,
        }


@dataclass
class ShoppingList:
    id: int
    user_id: int
    name: str
    created_at: datetime
    description: Optional[str] = None
    items: List[ShoppingListItem] = field(default_factory=list)

    @property
    def pending_items(self) -> List[ShoppingListItem]:
        return [i for i in self.items if not i.purchased]

    @property
    def purchased_items(self) -> List[ShoppingListItem]:
        return [i for i in self.items if i.purchased]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "created_at": isoformat(self.created_at),
            "items": [i.to_dict() for i in self.items],
        }
