import os
from typing import Any
from pathlib import Path

PROJECT_NAME = "bulkcopy"

# Paths
PROJECT_ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

LOG_FOLDER = PROJECT_ROOT_DIR / "logs"

TMP_DIRNAME = ".bcp"

# bcp writes empty strings as a single NUL so they stay distinct from NULL (zero bytes)
NUL = "\x00"

FORMAT_FILE_NAMESPACE = "http://schemas.microsoft.com/sqlserver/2004/bulkload/format"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"


def default_tmp_dir() -> Path:
    """Base directory for generated format/data files: $HOME/.bcp"""
    home = os.getenv("HOME") or os.getenv("USERPROFILE") or str(Path.home())
    return Path(home) / TMP_DIRNAME


# Logging Configuration

LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": "INFO",
        },
        "rotating_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "level": "DEBUG",
            "filename": str(LOG_FOLDER / "bulkcopy.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8",
        },
    },
    "loggers": {
        "": {  # root logger
            "handlers": ["console", "rotating_file"],
            "level": "DEBUG",
            "propagate": True
        },
    }

}
