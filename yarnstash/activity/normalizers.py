"""
Per-family activity normalizers.

Each normalizer reads the recent rows of one entity family and projects
them into ``ActivityRecord`` objects. The registry order (yarn, pattern,
project, progress) is the order in which families are merged.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Type, TypeVar

from ..data.base import EntityRepository
from ..models.activity import ActivityRecord, ActivityType
from ..models.entities import Pattern, Project, ProjectProgress, YarnStock

T = TypeVar("T")


class ActivityNormalizer(ABC, Generic[T]):
    """Turns rows of one entity family into activity records."""

    type: ActivityType

    def __init__(self, repository: EntityRepository[T]):
        self.repository = repository

    async def fetch_recent(self, user_id: int, limit: int) -> List[ActivityRecord]:
        """
        Read up to ``limit`` of the user's newest rows and normalize them.

        Returns:
            Records in repository order (newest created first)
        """
        rows = await self.repository.find_recent(user_id, limit)
        return [self.to_activity_record(row) for row in rows]

    @abstractmethod
    def to_activity_record(self, entity: T) -> ActivityRecord:
        pass

    def _record_id(self, entity_id: int) -> str:
        return f"{self.type.value}-{entity_id}"


class YarnNormalizer(ActivityNormalizer[YarnStock]):
    type = ActivityType.YARN

    def to_activity_record(self, entity: YarnStock) -> ActivityRecord:
        return ActivityRecord(
            id=self._record_id(entity.id),
            type=self.type,
            action="added",
            description=f"Added {entity.colorway} to inventory",
            entity_id=entity.id,
            occurred_at=entity.created_at,
            details={
                "brand": entity.brand_name,
                "line": entity.line_name,
                "colorway": entity.colorway,
                "skeins": entity.skeins_total,
            },
        )


class PatternNormalizer(ActivityNormalizer[Pattern]):
    type = ActivityType.PATTERN

    def to_activity_record(self, entity: Pattern) -> ActivityRecord:
        return ActivityRecord(
            id=self._record_id(entity.id),
            type=self.type,
            action="added",
            description=f"Added pattern: {entity.title}",
            entity_id=entity.id,
            occurred_at=entity.created_at,
            details={
                "title": entity.title,
                "designer": entity.designer_name,
                "craft_type": entity.craft_type,
            },
        )


class ProjectNormalizer(ActivityNormalizer[Project]):
    """Completed projects are dated by completion, the rest by creation."""

    type = ActivityType.PROJECT

    def to_activity_record(self, entity: Project) -> ActivityRecord:
        if entity.is_completed:
            action = "completed"
            occurred_at = entity.completion_date or entity.created_at
        else:
            action = "started"
            occurred_at = entity.created_at

        return ActivityRecord(
            id=self._record_id(entity.id),
            type=self.type,
            action=action,
            description=f"{action.capitalize()} project: {entity.project_name}",
            entity_id=entity.id,
            occurred_at=occurred_at,
            details={
                "name": entity.project_name,
                "pattern": entity.pattern_title,
                "status": entity.status.value,
            },
        )


class ProgressNormalizer(ActivityNormalizer[ProjectProgress]):
    """Progress records point at the project they belong to."""

    type = ActivityType.PROGRESS

    def to_activity_record(self, entity: ProjectProgress) -> ActivityRecord:
        project_name = entity.project_name or f"project {entity.project_id}"
        return ActivityRecord(
            id=self._record_id(entity.id),
            type=self.type,
            action="updated",
            description=f"Updated progress on {project_name}",
            entity_id=entity.project_id,
            occurred_at=entity.created_at,
            details={
                "project": entity.project_name,
                "type": entity.progress_type.value,
                "value": entity.progress_value,
                "notes": entity.notes,
            },
        )


NORMALIZER_REGISTRY: Dict[ActivityType, Type[ActivityNormalizer[Any]]] = {
    ActivityType.YARN: YarnNormalizer,
    ActivityType.PATTERN: PatternNormalizer,
    ActivityType.PROJECT: ProjectNormalizer,
    ActivityType.PROGRESS: ProgressNormalizer,
}
