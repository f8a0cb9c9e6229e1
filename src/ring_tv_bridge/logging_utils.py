"""Logging setup for the bridge."""

import logging

logger = logging.getLogger('ring-tv-bridge')

# Third-party loggers that log every request/heartbeat at INFO/DEBUG.
NOISY_LOGGERS = ('ring_doorbell', 'firebase_messaging', 'urllib3')


def setup_logging(log_level: str):
    """Configure logging with the specified level."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Reconfigure the root logger
    logging.getLogger().setLevel(level)
    logger.setLevel(level)

    # SDK chatter stays at WARNING unless we are debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    logger.info(f"Log level set to {log_level.upper()}")
