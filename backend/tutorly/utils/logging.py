from __future__ import annotations

import logging
import sys

from tutorly.config import settings

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once for the API service and the session client."""
    global _configured
    if _configured:
        return

    resolved = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    # httpx logs full request URLs at INFO; Supabase auth URLs can carry tokens
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _configured = True
    logging.info("Logging configured successfully", extra={"level": resolved})


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
