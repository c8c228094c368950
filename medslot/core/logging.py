# medslot/core/logging.py
import logging
import sys


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure standard library logging once for the whole process.
    Modules log through logging.getLogger(__name__).
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
