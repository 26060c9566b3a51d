"""Exception hierarchy shared by the store, the services and the API layer."""

from __future__ import annotations

from typing import Any


class DailySparkError(Exception):
    """Base exception for DailySpark errors."""


class ValidationFailure(DailySparkError):
    """A request is missing a required field or carries an invalid value."""


class NotFoundError(DailySparkError):
    """A user or curriculum does not exist."""


class AlreadyExistsError(DailySparkError):
    """A document with the requested id already exists."""


class UserLimitReached(DailySparkError):
    """Creating another user would exceed the configured maximum."""

    def __init__(self, limit: int, current: int):
        self.limit = limit
        self.current = current
        super().__init__(f"User limit reached. Maximum allowed users: {limit}. Current users: {current}")


class StoreError(DailySparkError):
    """Any I/O failure talking to the document store."""

    def __init__(self, operation: str, message: str, **identifiers: Any):
        self.operation = operation
        self.identifiers = identifiers
        ids = ", ".join(f"{k}={v}" for k, v in identifiers.items())
        super().__init__(f"{operation} failed ({ids}): {message}" if ids else f"{operation} failed: {message}")


class BatchError(DailySparkError):
    """A single user's aggregation failed and aborted the whole fan-out."""

    def __init__(self, user_id: str, cause: BaseException):
        self.user_id = user_id
        self.cause = cause
        super().__init__(f"Fan-out aborted by user {user_id}: {cause}")
