import logging

from sheetsync.core.config import load_settings


def configure_logging_if_needed() -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=load_settings().log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
