"""
ASGI entry point for the photoquest media service.

Run with ``uvicorn photoquest.main:app`` or the ``photoquest-serve`` script.
"""

import uvicorn
from dotenv import load_dotenv

from photoquest.api.app import create_app
from photoquest.config import AppSettings, get_env, is_development
from photoquest.logging_config import configure_structured_logging, get_logger

load_dotenv()
configure_structured_logging()
logger = get_logger(__name__)

settings = AppSettings.from_env()
app = create_app(settings)

logger.info(
    "photoquest_started",
    upload_dir=str(settings.upload_dir),
    remote_provider=settings.remote.provider if settings.remote else None,
)


def run() -> None:
    """Serve the app with uvicorn."""
    uvicorn.run(
        "photoquest.main:app",
        host=get_env("HOST", "0.0.0.0"),
        port=get_env("PORT", 8000, int),
        reload=is_development(),
        log_config=None,
    )


if __name__ == "__main__":
    run()
