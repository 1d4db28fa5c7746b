"""
Logging setup for DataCopilot.

All modules log through the ``datacopilot.*`` logger hierarchy; this
configures the root handler once at application start.
"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler on the root logger (idempotent)."""
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    root.setLevel(numeric_level)
    logging.getLogger("datacopilot").setLevel(numeric_level)
