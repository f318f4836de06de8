import logging
import sys

from app.config import Settings


def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Every module logs through ``logging.getLogger(__name__)``; this sets the
    root handler once and makes uvicorn share it.
    """
    log_level = settings.LOG_LEVEL.upper()

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Make uvicorn use the root logger config
    logging.getLogger("uvicorn.access").handlers = logging.getLogger().handlers
    logging.getLogger("uvicorn.error").handlers = logging.getLogger().handlers
