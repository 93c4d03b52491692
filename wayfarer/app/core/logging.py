# wayfarer/app/core/logging.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once per process.

    Journal bodies, tokens, passwords and key material must never be
    passed to a logger; callers log ids only.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
