"""User and curriculum management - the create/read/update flows behind the API.

Centralizes validation, duplicate-id checks and the user limit so routes only
translate errors into HTTP responses.
"""

from __future__ import annotations

import uuid

from dailyspark.curriculum.models import (
    CreateCurriculumRequest,
    CreateUserRequest,
    Curriculum,
    UpdateCurriculumRequest,
    UpdateUserRequest,
    User,
)
from dailyspark.curriculum.repository import CurriculumRepository, UserRepository
from dailyspark.errors import AlreadyExistsError, NotFoundError, UserLimitReached, ValidationFailure
from dailyspark.observability.logging import get_logger

logger = get_logger(__name__)


def _require(value: str | None, field: str) -> str:
    if not value:
        raise ValidationFailure(f"{field} is required")
    return value


class UserService:
    def __init__(self, users: UserRepository, max_users_limit: int):
        self.users = users
        self.max_users_limit = max_users_limit

    async def create_user(self, request: CreateUserRequest) -> User:
        """
        Create a user.

        Raises:
            ValidationFailure: email or displayName missing
            UserLimitReached: the counter is at the configured maximum
            AlreadyExistsError: an explicit id is already taken
        """
        _require(request.email, "Email")
        _require(request.display_name, "DisplayName")

        current = await self.users.get_count()
        if current >= self.max_users_limit:
            raise UserLimitReached(self.max_users_limit, current)

        if request.id and await self.users.exists(request.id):
            raise AlreadyExistsError(f"User with ID '{request.id}' already exists")

        user = User(
            id=request.id or str(uuid.uuid4()),
            email=request.email,
            display_name=request.display_name,
        )
        await self.users.create(user)

        # Counter and user document are separate writes; no cross-document transaction
        total = await self.users.increment_count()
        logger.info("Successfully created user with ID: %s. Total users: %d", user.id, total)
        return user

    async def get_user(self, user_id: str) -> User:
        _require(user_id, "userId")
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with ID '{user_id}' not found")
        return user

    async def update_user(self, request: UpdateUserRequest) -> User:
        """Apply non-empty changed fields. Nothing is written when nothing changed."""
        _require(request.id, "Id")
        user = await self.get_user(request.id)

        changes = {}
        if request.email and request.email != user.email:
            changes["email"] = request.email
        if request.display_name and request.display_name != user.display_name:
            changes["display_name"] = request.display_name

        if not changes:
            return user

        updated = user.model_copy(update=changes)
        await self.users.replace(updated)
        return updated

    async def get_user_count(self) -> int:
        return await self.users.get_count()


class CurriculumService:
    def __init__(self, curricula: CurriculumRepository):
        self.curricula = curricula

    async def list_by_user(self, user_id: str) -> list[Curriculum]:
        _require(user_id, "userId")
        curricula = await self.curricula.list_by_user(user_id)
        logger.info("Retrieved %d curricula for user ID: %s", len(curricula), user_id)
        return curricula

    async def get(self, curriculum_id: str, user_id: str) -> Curriculum:
        _require(curriculum_id, "curriculumId")
        _require(user_id, "userId")
        curriculum = await self.curricula.get_by_id(curriculum_id, user_id)
        if curriculum is None:
            raise NotFoundError(
                f"Curriculum with ID '{curriculum_id}' not found for user '{user_id}'"
            )
        return curriculum

    async def create(self, request: CreateCurriculumRequest) -> Curriculum:
        _require(request.user_id, "UserId")
        _require(request.course_title, "CourseTitle")

        if request.id and await self.curricula.exists(request.id):
            raise AlreadyExistsError(f"Curriculum with ID '{request.id}' already exists")

        curriculum = Curriculum(
            id=request.id or str(uuid.uuid4()),
            user_id=request.user_id,
            course_title=request.course_title,
            status=request.status,
            next_reminder_date=request.next_reminder_date,
            topics=request.topics,
        )
        return await self.curricula.create(curriculum)

    async def update(self, request: UpdateCurriculumRequest) -> Curriculum:
        """Partial update; only provided, changed fields are applied."""
        _require(request.id, "Id")
        _require(request.user_id, "UserId")
        existing = await self.get(request.id, request.user_id)

        changes: dict[str, object] = {}
        if request.course_title and request.course_title != existing.course_title:
            changes["course_title"] = request.course_title
        if request.status is not None and request.status != existing.status:
            changes["status"] = request.status
        if (
            request.next_reminder_date is not None
            and request.next_reminder_date != existing.next_reminder_date
        ):
            changes["next_reminder_date"] = request.next_reminder_date
        if request.topics is not None and request.topics != existing.topics:
            changes["topics"] = request.topics

        if not changes:
            return existing

        updated = existing.model_copy(update=changes)
        return await self.curricula.replace(updated)
