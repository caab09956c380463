# logging_config.py
import logging
import os
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

load_dotenv()
# Use an environment variable for the log file, with a default
LOG_FILE = os.environ.get("LOG_FILE_PATH", "/tmp/eco_action_verifier.log")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def setup_logging(log_file: str = LOG_FILE, level: str = LOG_LEVEL) -> logging.Logger:
    """Configures a rotating file logger for the verification subsystem."""
    logger = logging.getLogger()

    # Avoid adding handlers multiple times (Streamlit reruns the script)
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return logger

    logger.setLevel(getattr(logging, level, logging.INFO))

    # 10MB per file, keep last 5 files
    handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
