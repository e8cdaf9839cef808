import uvicorn

from weather_relay.config import settings
from weather_relay.main import create_app
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def main() -> None:
    """Configure logging and serve the relay until interrupted."""
    setup_logging(level=settings.log_level, job_name="weather-relay")

    logger.info("Starting server", extra={"host": settings.host, "port": settings.port})
    try:
        uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    except SystemExit:
        # uvicorn exits instead of raising when the port cannot be bound.
        logger.error("Server failed", extra={"host": settings.host, "port": settings.port})
        raise


if __name__ == "__main__":
    main()
