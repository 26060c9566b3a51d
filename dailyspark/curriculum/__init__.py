"""
Curriculum domain: models, repositories, the per-user topic aggregation
pipeline and the all-users fan-out.
"""

from dailyspark.curriculum.models import (
    AggregationResult,
    Curriculum,
    CurriculumStatus,
    FlattenedTopic,
    Topic,
    TopicStatus,
    User,
)

__all__ = [
    "AggregationResult",
    "Curriculum",
    "CurriculumStatus",
    "FlattenedTopic",
    "Topic",
    "TopicStatus",
    "User",
]
