"""
Abstract repository interfaces for the data access layer.

Every read takes the owning ``user_id`` and must never return rows that
belong to another user. Entity family repositories share the
``EntityRepository`` read interface used by the activity aggregator and
the backup assembler.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from ..models.entities import Pattern, Project, ProjectProgress, YarnStock
from ..models.shopping_list import ShoppingList
from ..models.sync_log import SyncLogEntry

T = TypeVar("T")


class DatabaseConnection(ABC):
    """Abstract database connection."""

    @abstractmethod
    async def connect(self) -> None:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        pass


class EntityRepository(ABC, Generic[T]):
    """Read interface shared by every domain entity family."""

    @abstractmethod
    async def find_recent(self, user_id: int, limit: int) -> List[T]:
        """
        Find the most recently created rows for a user.

        Args:
            user_id: Owning user
            limit: Maximum number of rows

        Returns:
            Rows ordered newest first (ties broken by id, newest first)
        """
        pass

    @abstractmethod
    async def count_since(self, user_id: int, since: datetime) -> int:
        """
        Count rows created at or after ``since``.

        Args:
            user_id: Owning user
            since: Inclusive lower bound

        Returns:
            Number of matching rows
        """
        pass

    @abstractmethod
    async def find_in_range(self, user_id: int, start: datetime, end: datetime) -> List[T]:
        """
        Find rows created within ``[start, end)``.

        Args:
            user_id: Owning user
            start: Inclusive lower bound
            end: Exclusive upper bound

        Returns:
            Rows ordered newest first
        """
        pass


class YarnRepository(EntityRepository[YarnStock]):
    """Yarn inventory reads."""

    @abstractmethod
    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[YarnStock]:
        """Every yarn item owned by the user, optionally bounded by creation time."""
        pass

    @abstractmethod
    async def count(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def total_value(self, user_id: int) -> float:
        """Sum of purchase prices."""
        pass

    @abstractmethod
    async def count_by_weight(self, user_id: int) -> Dict[str, int]:
        """Item counts grouped by yarn weight category."""
        pass


class PatternRepository(EntityRepository[Pattern]):
    """Pattern reads plus Drive file bookkeeping."""

    @abstractmethod
    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Pattern]:
        pass

    @abstractmethod
    async def count(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def find_unsynced(self, user_id: int) -> List[Pattern]:
        """
        Find patterns with a local file that has not been uploaded to Drive.

        Args:
            user_id: Owning user

        Returns:
            Patterns ordered oldest first
        """
        pass

    @abstractmethod
    async def set_drive_file(
        self,
        user_id: int,
        pattern_id: int,
        drive_file_id: str,
        thumbnail_drive_id: Optional[str] = None,
    ) -> bool:
        """
        Record the Drive object ids of an uploaded pattern file.

        Returns:
            True if a pattern owned by the user was updated
        """
        pass


class ProjectRepository(EntityRepository[Project]):
    """Project reads."""

    @abstractmethod
    async def find_all(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Project]:
        pass

    @abstractmethod
    async def count_completed_since(self, user_id: int, since: datetime) -> int:
        """Count completed projects whose completion date is at or after ``since``."""
        pass

    @abstractmethod
    async def find_completed_in_range(
        self, user_id: int, start: datetime, end: datetime
    ) -> List[Project]:
        """Completed projects whose completion date falls within ``[start, end)``."""
        pass

    @abstractmethod
    async def count_by_status(self, user_id: int) -> Dict[str, int]:
        pass


class ProgressRepository(EntityRepository[ProjectProgress]):
    """Project progress reads, scoped to the user through the owning project."""
    pass


class SyncLogRepository(ABC):
    """Append-only sync audit log."""

    @abstractmethod
    async def add(self, entry: SyncLogEntry) -> int:
        """
        Append an entry.

        Args:
            entry: The entry to store

        Returns:
            The new row id
        """
        pass

    @abstractmethod
    async def find_by_user(self, user_id: int, limit: int = 50) -> List[SyncLogEntry]:
        """Most recent entries for a user, newest first."""
        pass


class DriveTokenRepository(ABC):
    """Encrypted per-user Google Drive credentials."""

    @abstractmethod
    async def save_tokens(
        self,
        user_id: int,
        access_token: str,
        refresh_token: str,
        expires_at: Optional[datetime],
        scope: str,
    ) -> None:
        """Store already-encrypted tokens, replacing any previous pair."""
        pass

    @abstractmethod
    async def get_tokens(self, user_id: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete_tokens(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def list_connected_users(self) -> List[int]:
        pass


class ShoppingListRepository(ABC):

    @abstractmethod
    async def get_list(self, user_id: int, list_id: int) -> Optional[ShoppingList]:
        """
        Load a shopping list with its items.

        Returns:
            The list if it exists and belongs to the user, None otherwise
        """
        pass
