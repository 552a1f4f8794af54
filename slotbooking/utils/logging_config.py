import logging
from logging.handlers import RotatingFileHandler
import os

from slotbooking.config import settings

CONSOLE_FORMAT = '%(levelname)s - %(name)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _file_handler(log_dir: str) -> RotatingFileHandler:
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(os.path.join(log_dir, "app.log"), maxBytes=10_000_000, backupCount=5)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(debug: bool | None = None, log_dir: str | None = None) -> logging.Logger:
    """
    Richtet den Logger "slotbooking" ein (Konsole + rotierende Datei).

    Ohne log_dir wird nur auf die Konsole geloggt. Im Debug-Modus erscheinen
    zusätzlich die SQL-Statements von SQLAlchemy.
    """
    debug = settings.debug if debug is None else debug
    log_dir = settings.log_dir if log_dir is None else log_dir

    logger = logging.getLogger("slotbooking")
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    if log_dir:
        logger.addHandler(_file_handler(log_dir))

    # SQL nur im Debug-Modus
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)

    return logger
