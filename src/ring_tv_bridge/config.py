"""Configuration loading and validation."""

import os
import logging
import sys

import yaml
from dotenv import load_dotenv
from voluptuous import Schema, Optional, Any, ALLOW_EXTRA, Invalid

from ring_tv_bridge.constants import (
    BACKGROUND_COLOR,
    DEFAULT_DISPLAY_TIME,
    DEFAULT_POLLING_SECONDS,
    ERROR_IMAGE_PATH,
    IMAGE_WIDTH,
    MESSAGE_COLOR,
    MESSAGE_SIZE,
    NOTIFICATION_POSITION,
    RECEIVER_PORT,
    TITLE_COLOR,
    TITLE_SIZE,
)

logger = logging.getLogger('ring-tv-bridge')


# Configuration Schema
CONFIG_SCHEMA = Schema({
    # PiPup receivers (Android TV hosts); IP_ADDRESSES env overrides this list.
    Optional('receivers'): [str],
    Optional('network'): {
        Optional('receiver_port'): int,     # PiPup port (default 7979).
    },
    # Overlay appearance sent with every notification.
    Optional('display'): {
        Optional('duration'): int,          # Seconds the overlay stays on screen.
        Optional('position'): int,          # PiPup position index (0 = top right).
        Optional('title_color'): str,
        Optional('title_size'): int,
        Optional('message_color'): str,
        Optional('message_size'): int,
        Optional('background_color'): str,
        Optional('image_width'): int,
    },
    Optional('settings'): {
        Optional('log_level'): Any('DEBUG', 'INFO', 'WARNING', 'ERROR'),
        Optional('polling_seconds'): int,           # Listener health check cadence; keep at 5 or above.
        Optional('snapshot_dir'): str,              # Directory for per-event snapshot files.
        Optional('error_image'): str,               # Image sent when a snapshot cannot be fetched.
        Optional('env_file'): str,                  # .env file holding API_TOKEN; rewritten on token rotation.
        Optional('push_credentials_file'): str,     # JSON file for Ring push (FCM) credentials; empty = memory only.
        Optional('notify_on_start'): bool,          # Send "notifications started" when polling begins.
    },
}, extra=ALLOW_EXTRA)


def _split_hosts(value: str) -> list[str]:
    return [h.strip() for h in value.split(',') if h.strip()]


def load_config() -> dict:
    """Load configuration from config.yaml merged with the env file and environment.

    Priority (highest to lowest):
    1. Environment variables (including values loaded from the env file)
    2. config.yaml
    3. Default values

    Note: IP_ADDRESSES and API_TOKEN are REQUIRED.
    """
    config = {
        'RECEIVERS': [],
        'RECEIVER_PORT': RECEIVER_PORT,
        'API_TOKEN': None,

        # Display defaults
        'DISPLAY_TIME': DEFAULT_DISPLAY_TIME,
        'POSITION': NOTIFICATION_POSITION,
        'TITLE_COLOR': TITLE_COLOR,
        'TITLE_SIZE': TITLE_SIZE,
        'MESSAGE_COLOR': MESSAGE_COLOR,
        'MESSAGE_SIZE': MESSAGE_SIZE,
        'BACKGROUND_COLOR': BACKGROUND_COLOR,
        'IMAGE_WIDTH': IMAGE_WIDTH,

        # Settings defaults
        'LOG_LEVEL': 'INFO',
        'POLLING_SECONDS': DEFAULT_POLLING_SECONDS,
        'SNAPSHOT_DIR': '',  # Empty = system temp dir
        'ERROR_IMAGE': str(ERROR_IMAGE_PATH),
        'ENV_FILE': '.env',
        'PUSH_CREDENTIALS_FILE': '',
        'NOTIFY_ON_START': True,
    }

    # Load from config.yaml if exists
    config_paths = ['./config.yaml', '/app/config.yaml']
    config_loaded = False

    for path in config_paths:
        if os.path.exists(path):
            try:
                logger.info(f"Loading config from {path}")
                with open(path, 'r') as f:
                    yaml_config = yaml.safe_load(f) or {}

                # Validate schema
                try:
                    yaml_config = CONFIG_SCHEMA(yaml_config)
                except Invalid as e:
                    logger.error(f"Invalid configuration in {path}: {e}")
                    sys.exit(1)

                if 'receivers' in yaml_config:
                    config['RECEIVERS'] = [h.strip() for h in yaml_config['receivers'] if h.strip()]

                if 'network' in yaml_config:
                    network = yaml_config['network']
                    config['RECEIVER_PORT'] = network.get('receiver_port', config['RECEIVER_PORT'])

                if 'display' in yaml_config:
                    display = yaml_config['display']
                    config['DISPLAY_TIME'] = display.get('duration', config['DISPLAY_TIME'])
                    config['POSITION'] = display.get('position', config['POSITION'])
                    config['TITLE_COLOR'] = display.get('title_color', config['TITLE_COLOR'])
                    config['TITLE_SIZE'] = display.get('title_size', config['TITLE_SIZE'])
                    config['MESSAGE_COLOR'] = display.get('message_color', config['MESSAGE_COLOR'])
                    config['MESSAGE_SIZE'] = display.get('message_size', config['MESSAGE_SIZE'])
                    config['BACKGROUND_COLOR'] = display.get('background_color', config['BACKGROUND_COLOR'])
                    config['IMAGE_WIDTH'] = display.get('image_width', config['IMAGE_WIDTH'])

                if 'settings' in yaml_config:
                    settings = yaml_config['settings']
                    config['LOG_LEVEL'] = settings.get('log_level', config['LOG_LEVEL'])
                    config['POLLING_SECONDS'] = settings.get('polling_seconds', config['POLLING_SECONDS'])
                    config['SNAPSHOT_DIR'] = settings.get('snapshot_dir') or config['SNAPSHOT_DIR']
                    config['ERROR_IMAGE'] = settings.get('error_image') or config['ERROR_IMAGE']
                    config['ENV_FILE'] = settings.get('env_file') or config['ENV_FILE']
                    config['PUSH_CREDENTIALS_FILE'] = settings.get('push_credentials_file') or config['PUSH_CREDENTIALS_FILE']
                    config['NOTIFY_ON_START'] = settings.get('notify_on_start', config['NOTIFY_ON_START'])

                config_loaded = True
                break

            except Exception as e:
                logger.error(f"Error loading config from {path}: {e}")

    if not config_loaded:
        logger.info("No config.yaml found, using defaults")

    # The env file is also the token store; process env wins over its values.
    config['ENV_FILE'] = os.getenv('ENV_FILE') or config['ENV_FILE']
    load_dotenv(config['ENV_FILE'], override=False)

    # Environment variables override everything (for secrets/deployment)
    ip_addresses = os.getenv('IP_ADDRESSES')
    if ip_addresses:
        config['RECEIVERS'] = _split_hosts(ip_addresses)
    config['API_TOKEN'] = os.getenv('API_TOKEN') or config['API_TOKEN']
    config['RECEIVER_PORT'] = int(os.getenv('RECEIVER_PORT', str(config['RECEIVER_PORT'])))
    config['DISPLAY_TIME'] = int(os.getenv('DISPLAY_TIME', str(config['DISPLAY_TIME'])))
    config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', config['LOG_LEVEL'])
    config['POLLING_SECONDS'] = int(os.getenv('POLLING_SECONDS', str(config['POLLING_SECONDS'])))
    config['SNAPSHOT_DIR'] = os.getenv('SNAPSHOT_DIR') or config['SNAPSHOT_DIR']
    config['PUSH_CREDENTIALS_FILE'] = os.getenv('PUSH_CREDENTIALS_FILE') or config['PUSH_CREDENTIALS_FILE']

    if config['POLLING_SECONDS'] < DEFAULT_POLLING_SECONDS:
        logger.warning(
            "POLLING_SECONDS=%s is below %s; the Ring refresh token may be invalidated",
            config['POLLING_SECONDS'],
            DEFAULT_POLLING_SECONDS,
        )

    # Validate required settings
    missing = []
    if not config['RECEIVERS']:
        missing.append('IP_ADDRESSES (receivers)')
    if not config['API_TOKEN']:
        missing.append('API_TOKEN')

    if missing:
        raise ValueError(
            f"Missing required configuration: {', '.join(missing)}. "
            f"Set these in {config['ENV_FILE']} or as environment variables."
        )

    return config
