"""Process entry point: ``hardia`` console script.

uvicorn handles SIGTERM/SIGINT by closing the listener and letting
in-flight requests finish before the process exits.
"""
import logging
import sys

import uvicorn
from pydantic import ValidationError

from hardia.config import get_settings
from hardia.main import create_app
from hardia.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        missing = ", ".join(str(err["loc"][0]).upper() for err in e.errors())
        logger.error(f"Invalid configuration, check your .env file: {missing}")
        sys.exit(1)

    setup_logging(settings.log_level, access_log=settings.log_access)
    logger.info(f"HardIA listening on {settings.host}:{settings.port}")

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
