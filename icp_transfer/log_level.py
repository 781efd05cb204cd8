import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)8s | %(name)s | %(message)s"


def get_log_level(environ=os.environ) -> int:
    level = environ.get("LOG_LEVEL", "WARNING").upper()
    if level == "CRITICAL":
        return logging.CRITICAL
    elif level == "FATAL":
        return logging.FATAL
    elif level == "ERROR":
        return logging.ERROR
    elif level == "WARNING":
        return logging.WARNING
    elif level == "WARN":
        return logging.WARN
    elif level == "INFO":
        return logging.INFO
    elif level == "DEBUG":
        return logging.DEBUG
    return logging.WARNING


def setup_logging(environ=os.environ):
    logging.basicConfig(level=get_log_level(environ), format=LOG_FORMAT)
