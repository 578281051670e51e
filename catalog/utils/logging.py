import os
from loguru import logger
from catalog.core.config import settings

# Base directory for logs
LOG_DIR = settings.LOG_DIR
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"

# Main app log
APP_LOG_PATH = os.path.join(LOG_DIR, "app.log")
logger.add(
    APP_LOG_PATH,
    rotation="10 MB",
    level=settings.LOG_LEVEL,
    enqueue=True,
    backtrace=True,
    diagnose=False,
    format=LOG_FORMAT,
)

# Upstream (KLARA) and database problems end up here as well
ERROR_LOG_PATH = os.path.join(LOG_DIR, "errors.log")
logger.add(
    ERROR_LOG_PATH,
    rotation="10 MB",
    level="WARNING",
    enqueue=True,
    backtrace=True,
    diagnose=False,
    format=LOG_FORMAT,
)

# Startup log
STARTUP_LOG_PATH = os.path.join(LOG_DIR, "startup", "startup.log")
os.makedirs(os.path.dirname(STARTUP_LOG_PATH), exist_ok=True)
logger.add(
    STARTUP_LOG_PATH,
    rotation="10 MB",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("startup", False),
    format=LOG_FORMAT,
)


def get_logger():
    """Return the global logger."""
    return logger
