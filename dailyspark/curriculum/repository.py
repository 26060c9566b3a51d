"""
User and Curriculum repositories - typed access to the document store.

Users are partitioned by their own id, curricula by ``userId``. Store rows are
validated straight into the pydantic models here, so nothing above this layer
handles raw dictionaries.
"""

from __future__ import annotations

from dailyspark.config import Settings
from dailyspark.curriculum.models import Curriculum, CurriculumStatus, User
from dailyspark.infrastructure.document_store import AsyncDocumentStore
from dailyspark.observability.logging import get_logger

logger = get_logger(__name__)

USER_COUNTER_ID = "userCount"


class UserRepository:
    """CRUD for the users container plus the user counter document."""

    def __init__(self, store: AsyncDocumentStore, settings: Settings):
        self.store = store
        self.container = settings.users_container
        self.counters = settings.counters_container

    async def get_by_id(self, user_id: str) -> User | None:
        doc = await self.store.get_by_id(self.container, user_id, partition_key=user_id)
        if doc is None:
            return None
        return User.model_validate(doc)

    async def list_ids(self) -> list[str]:
        """Ids of every user (unscoped scan, id field only)."""
        return await self.store.scan_ids(self.container)

    async def exists(self, user_id: str) -> bool:
        return await self.store.exists(self.container, user_id)

    async def create(self, user: User) -> User:
        await self.store.create(self.container, user.to_document(), partition_key=user.id)
        logger.info("Created user %s", user.id)
        return user

    async def replace(self, user: User) -> User:
        await self.store.replace(self.container, user.to_document(), partition_key=user.id)
        logger.info("Updated user %s", user.id)
        return user

    async def get_count(self) -> int:
        doc = await self.store.get_by_id(
            self.counters, USER_COUNTER_ID, partition_key=USER_COUNTER_ID
        )
        return int(doc.get("count", 0)) if doc else 0

    async def increment_count(self) -> int:
        return await self.store.increment(self.counters, USER_COUNTER_ID)


class CurriculumRepository:
    """CRUD for the curricula container."""

    def __init__(self, store: AsyncDocumentStore, settings: Settings):
        self.store = store
        self.container = settings.curricula_container

    async def list_by_user(self, user_id: str) -> list[Curriculum]:
        docs = await self.store.query(self.container, partition_key=user_id)
        return [Curriculum.model_validate(doc) for doc in docs]

    async def list_active_by_user(self, user_id: str) -> list[Curriculum]:
        """Active curricula for a user, in store order."""
        docs = await self.store.query(
            self.container,
            partition_key=user_id,
            filters={"userId": user_id, "status": CurriculumStatus.ACTIVE.value},
        )
        return [Curriculum.model_validate(doc) for doc in docs]

    async def get_by_id(self, curriculum_id: str, user_id: str) -> Curriculum | None:
        doc = await self.store.get_by_id(self.container, curriculum_id, partition_key=user_id)
        if doc is None:
            return None
        return Curriculum.model_validate(doc)

    async def exists(self, curriculum_id: str) -> bool:
        return await self.store.exists(self.container, curriculum_id)

    async def create(self, curriculum: Curriculum) -> Curriculum:
        await self.store.create(
            self.container, curriculum.to_document(), partition_key=curriculum.user_id
        )
        logger.info("Created curriculum %s for user %s", curriculum.id, curriculum.user_id)
        return curriculum

    async def replace(self, curriculum: Curriculum) -> Curriculum:
        await self.store.replace(
            self.container, curriculum.to_document(), partition_key=curriculum.user_id
        )
        logger.info("Updated curriculum %s", curriculum.id)
        return curriculum
