"""HTTP API for DailySpark."""

from __future__ import annotations

import os


def main() -> None:
    """Run the API server with uvicorn (``dailyspark-api``)."""
    import uvicorn

    uvicorn.run(
        "dailyspark.api.app:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
    )
