import logging
import sys

from fleetflow.app.core.config import settings


def setup_logging():
    """
    Configure logging for the application.

    Logs go to stdout with timestamps, levels and logger names so that
    container runtimes can collect them.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Reduce SQLAlchemy noise in logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("fleetflow")
