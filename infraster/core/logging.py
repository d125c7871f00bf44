from infraster.common.logging import setup_logging
from infraster.core.config import SERVICE_NAME


def init_logging() -> None:
    """Configure the root logger for the search service."""
    setup_logging(SERVICE_NAME)
