import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wallpaper_push.core.logging import initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging and report missing configuration before serving."""
  from wallpaper_push.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("wallpaper_push.core.lifespan")
  initialize_logging(settings)

  # Requests still fail with a clear error when configuration is incomplete.
  missing = settings.missing_required()
  if missing:
    logger.warning("Missing required configuration: %s", ", ".join(missing))
  else:
    logger.info("Startup complete environment=%s project_id=%s", settings.environment, settings.firebase_project_id)

  yield

  logger.info("Shutdown complete.")
