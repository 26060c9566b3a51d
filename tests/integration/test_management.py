"""Integration tests for user and curriculum management."""

from __future__ import annotations

import pytest

from dailyspark.curriculum.models import (
    CreateCurriculumRequest,
    CreateUserRequest,
    CurriculumStatus,
    UpdateCurriculumRequest,
    UpdateUserRequest,
)
from dailyspark.errors import AlreadyExistsError, NotFoundError, UserLimitReached, ValidationFailure
from tests.factories import make_topic, run


def _create(services, **fields):
    return run(services.users.create_user(CreateUserRequest(**fields)))


class TestUserService:
    def test_create_assigns_id_and_counts(self, services):
        user = _create(services, email="ada@example.com", display_name="Ada")

        assert user.id
        assert run(services.users.get_user(user.id)) == user
        assert run(services.users.get_user_count()) == 1

    def test_create_keeps_explicit_id(self, services):
        user = _create(services, id="u-ada", email="ada@example.com", display_name="Ada")
        assert user.id == "u-ada"

    @pytest.mark.parametrize(
        "fields, message",
        [
            ({"display_name": "Ada"}, "Email is required"),
            ({"email": "ada@example.com"}, "DisplayName is required"),
        ],
    )
    def test_create_requires_fields(self, services, fields, message):
        with pytest.raises(ValidationFailure, match=message):
            _create(services, **fields)
        assert run(services.users.get_user_count()) == 0

    def test_duplicate_id_rejected(self, services):
        _create(services, id="u-ada", email="ada@example.com", display_name="Ada")

        with pytest.raises(AlreadyExistsError, match="u-ada"):
            _create(services, id="u-ada", email="other@example.com", display_name="Other")
        assert run(services.users.get_user_count()) == 1

    def test_limit_is_enforced(self, services):
        # settings fixture caps users at 5
        for i in range(5):
            _create(services, email=f"u{i}@example.com", display_name=f"User {i}")

        with pytest.raises(UserLimitReached) as excinfo:
            _create(services, email="late@example.com", display_name="Late")

        assert str(excinfo.value) == (
            "User limit reached. Maximum allowed users: 5. Current users: 5"
        )

    def test_get_missing_user(self, services):
        with pytest.raises(NotFoundError):
            run(services.users.get_user("nobody"))

    def test_update_applies_changed_fields(self, services):
        _create(services, id="u-ada", email="ada@example.com", display_name="Ada")

        updated = run(
            services.users.update_user(UpdateUserRequest(id="u-ada", display_name="Ada L."))
        )

        assert updated.display_name == "Ada L."
        assert updated.email == "ada@example.com"
        assert run(services.users.get_user("u-ada")).display_name == "Ada L."

    def test_update_without_changes_writes_nothing(self, services, monkeypatch):
        _create(services, id="u-ada", email="ada@example.com", display_name="Ada")

        calls = []
        original = services.users.users.replace

        async def tracking(user):
            calls.append(user)
            return await original(user)

        monkeypatch.setattr(services.users.users, "replace", tracking)
        result = run(
            services.users.update_user(
                UpdateUserRequest(id="u-ada", email="ada@example.com", display_name="")
            )
        )

        assert result.display_name == "Ada"
        assert calls == []

    def test_update_missing_user(self, services):
        with pytest.raises(NotFoundError):
            run(services.users.update_user(UpdateUserRequest(id="nobody", email="x@example.com")))


class TestCurriculumService:
    def _create(self, services, **fields):
        fields.setdefault("user_id", "u-ada")
        fields.setdefault("course_title", "Algorithms")
        return run(services.curricula.create(CreateCurriculumRequest(**fields)))

    def test_create_and_get(self, services):
        created = self._create(services, topics=[make_topic("Sorting", 3600)])

        fetched = run(services.curricula.get(created.id, "u-ada"))

        assert fetched == created
        assert fetched.status == CurriculumStatus.NOT_STARTED
        assert fetched.topics[0].estimated_time == 3600

    def test_create_requires_user_and_title(self, services):
        with pytest.raises(ValidationFailure, match="UserId is required"):
            self._create(services, user_id="")
        with pytest.raises(ValidationFailure, match="CourseTitle is required"):
            self._create(services, course_title="")

    def test_duplicate_id_rejected(self, services):
        self._create(services, id="c-1")
        with pytest.raises(AlreadyExistsError):
            self._create(services, id="c-1")

    def test_get_is_scoped_to_owner(self, services):
        created = self._create(services)
        with pytest.raises(NotFoundError):
            run(services.curricula.get(created.id, "u-bob"))

    def test_list_by_user(self, services):
        self._create(services, id="c-1")
        self._create(services, id="c-2", course_title="Biology")
        self._create(services, id="c-3", user_id="u-bob")

        curricula = run(services.curricula.list_by_user("u-ada"))

        assert [c.id for c in curricula] == ["c-1", "c-2"]

    def test_partial_update(self, services):
        self._create(services, id="c-1", topics=[make_topic("Sorting")])

        updated = run(
            services.curricula.update(
                UpdateCurriculumRequest(id="c-1", user_id="u-ada", status=CurriculumStatus.ACTIVE)
            )
        )

        assert updated.status == CurriculumStatus.ACTIVE
        assert updated.course_title == "Algorithms"
        assert [t.title for t in updated.topics] == ["Sorting"]
        assert run(services.curricula.get("c-1", "u-ada")).status == CurriculumStatus.ACTIVE

    def test_activated_curriculum_is_aggregated(self, services, sender):
        _create(services, id="u-ada", email="ada@example.com", display_name="Ada")
        self._create(services, id="c-1", topics=[make_topic("Sorting")])
        assert run(services.topics.query_topics("u-ada")) is None

        run(
            services.curricula.update(
                UpdateCurriculumRequest(id="c-1", user_id="u-ada", status=CurriculumStatus.ACTIVE)
            )
        )

        assert [t.title for t in run(services.topics.query_topics("u-ada"))] == ["Sorting"]
