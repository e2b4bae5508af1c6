#!/usr/bin/env python3
"""
Script to run the Bookshelf API server.
"""

import uvicorn

from api.config import APIConfig
from utilities.config import AppConfig
from utilities.logger import get_logger, setup_logging


def main():
    """Run the API server."""
    app_config = AppConfig()
    api_config = APIConfig()

    setup_logging(
        log_level=app_config.log_level,
        log_format=app_config.log_format,
        log_file=app_config.get_log_file_path(),
        debug=app_config.debug,
    )

    logger = get_logger(__name__)
    logger.info(
        "Starting Bookshelf API Server",
        host=api_config.host,
        port=api_config.port,
        debug=api_config.debug,
        database=app_config.database_url.split("://", 1)[0],
    )

    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=app_config.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
