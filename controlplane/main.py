"""FastAPI application for the cloudprep control plane."""

from fastapi import FastAPI

from cloudprep.logging import configure_logging
from controlplane.routers import clusters, ports, preparations
from controlplane.settings import settings

configure_logging(settings.log_level, json_format=settings.json_logs)

app = FastAPI(
    title="cloudprep control plane",
    description="Prepares Azure clusters' networking for Submariner and cleans it up",
    version="0.1.0",
)

app.include_router(clusters.router)
app.include_router(ports.router)
app.include_router(preparations.router)


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
