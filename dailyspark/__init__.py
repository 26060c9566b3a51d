"""DailySpark - Personal learning-curriculum tracker with daily topic digests"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules don't pull in the API stack
def __getattr__(name: str):
    if name in ("AggregationOutcome", "CurriculumTopicsService"):
        from dailyspark.curriculum import service

        return getattr(service, name)

    if name == "ProcessAllUsersOrchestrator":
        from dailyspark.curriculum.orchestrator import ProcessAllUsersOrchestrator

        return ProcessAllUsersOrchestrator

    if name == "Settings":
        from dailyspark.config import Settings

        return Settings

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "AggregationOutcome",
    "CurriculumTopicsService",
    "ProcessAllUsersOrchestrator",
    "Settings",
]
