import logging
from logging.handlers import RotatingFileHandler

DETAILED_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s (%(funcName)s:%(lineno)d): %(message)s"
SIMPLE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level="INFO", log_file=None):
    """
    Configure the root logger with a console handler and, when log_file is
    given, a rotating file handler (10MB, 5 backups).
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    logging.getLogger("werkzeug").setLevel(numeric_level)
    # requests' connection pool chatter drowns the job logs at DEBUG
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.INFO))
    return root
