"""FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from dailyspark.services import Services, build_services


async def get_services(request: Request) -> Services:
    """
    Services for the app handling ``request``.

    Built on first use from the Settings the app was created with, so
    importing the API module does not touch the document store.
    """
    state = request.app.state
    if state.services is None:
        state.services = build_services(state.settings)
    return state.services
