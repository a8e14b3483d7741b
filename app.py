"""Main FastAPI application for the telemetry agent plugin configuration API."""

import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# Configure logging BEFORE importing any modules that use logger
log_level = os.getenv('LOG_LEVEL', 'INFO')
logging.basicConfig(
    level=getattr(logging, log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import after logging is configured
from fastapi import FastAPI
from configapi.routers import plugins_router

# Create FastAPI app
app = FastAPI(
    title="Telemetry Agent Config API",
    description="Runtime plugin configuration for the telemetry agent",
    version="1.0.0"
)

app.include_router(plugins_router)  # /plugins endpoints


@app.get("/")
async def root():
    return {"message": "Telemetry Agent Config API", "docs": "/docs"}


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    from configapi.dependencies import get_agent, get_registry

    logger.info("Starting Telemetry Agent Config API")
    registry = get_registry()
    agent = get_agent()
    logger.info(f"Registered plugin types: {registry.count()}")
    logger.info(f"  - Interval: {agent.interval}")
    logger.info(f"  - Flush interval: {agent.flush_interval}")
    logger.info(f"  - Default tags: {agent.tags or 'none'}")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event."""
    from configapi.dependencies import get_agent

    logger.info("Shutting down Telemetry Agent Config API")
    await get_agent().shutdown()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "9090"))
    uvicorn.run("app:app", host="0.0.0.0", port=port, reload=True)
