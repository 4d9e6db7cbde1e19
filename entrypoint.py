import uvicorn
import os
from logging_config import setup_logging

# Setup logging before importing app
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)

from app import app
from constants import HOST, PORT
from logging_config import get_logger

logger = get_logger(__name__)


def main():
    # Room state is process-local, so run a single worker
    logger.info(f"Starting peer rooms server on {HOST}:{PORT}")
    uvicorn.run(app, host=HOST, port=PORT, workers=1)


if __name__ == "__main__":
    main()
