"""
Curriculum domain models.

Documents are stored and served with camelCase field names (``displayName``,
``courseTitle``, ``estimatedTime``...). Python code uses snake_case; the alias
generator handles the translation in both directions, so store rows are
validated straight into these types.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TopicStatus(str, Enum):
    """Progress on a single topic."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class CurriculumStatus(str, Enum):
    """Lifecycle of a curriculum. Only ACTIVE curricula are emailed."""

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    ACTIVE = "Active"


class CamelModel(BaseModel):
    """Base model accepting either camelCase or snake_case input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize for the document store / JSON responses."""
        return self.model_dump(by_alias=True, mode="json")


class User(CamelModel):
    id: str = Field(..., description="User id, also the partition key")
    display_name: str = Field(default="")
    email: str = Field(default="")


class Topic(CamelModel):
    """One unit of study inside a curriculum. Has no lifecycle of its own."""

    id: str = Field(default="")
    title: str = Field(default="")
    description: str = Field(default="")
    estimated_time: int = Field(default=0, ge=0, description="Estimated time in seconds")
    question: str = Field(default="")
    resources: list[str] = Field(default_factory=list)
    status: TopicStatus = Field(default=TopicStatus.NOT_STARTED)


class Curriculum(CamelModel):
    id: str
    user_id: str = Field(..., description="Owner; partition key of the curricula container")
    course_title: str = Field(default="")
    status: CurriculumStatus = Field(default=CurriculumStatus.NOT_STARTED)
    next_reminder_date: datetime | None = None
    topics: list[Topic] = Field(default_factory=list)


class FlattenedTopic(CamelModel):
    """A topic tagged with its course title and a human-readable duration."""

    course_title: str
    title: str
    description: str
    estimated_time: str
    question: str
    resources: list[str] = Field(default_factory=list)
    status: TopicStatus


class AggregationResult(CamelModel):
    """Payload returned (and emailed) for one user."""

    display_name: str
    email: str
    topics: list[FlattenedTopic] = Field(default_factory=list)


# ============================================================================
# Requests
# ============================================================================


class CreateUserRequest(CamelModel):
    id: str | None = None
    email: str = ""
    display_name: str = ""


class UpdateUserRequest(CamelModel):
    id: str = ""
    email: str | None = None
    display_name: str | None = None


class CreateCurriculumRequest(CamelModel):
    id: str | None = None
    user_id: str = ""
    course_title: str = ""
    status: CurriculumStatus = CurriculumStatus.NOT_STARTED
    next_reminder_date: datetime | None = None
    topics: list[Topic] = Field(default_factory=list)


class UpdateCurriculumRequest(CamelModel):
    id: str = ""
    user_id: str = ""
    course_title: str | None = None
    status: CurriculumStatus | None = None
    next_reminder_date: datetime | None = None
    topics: list[Topic] | None = None
