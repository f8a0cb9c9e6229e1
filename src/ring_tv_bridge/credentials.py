"""Persist rotated Ring refresh tokens back into the env file.

Ring refresh tokens are single use: every refresh returns a new token and
invalidates the previous one, so the env file must be updated each time or the
next start fails to authenticate.
"""

import logging
from pathlib import Path

from ring_tv_bridge.errors import ConfigWriteError
from ring_tv_bridge.models import TokenRotation

logger = logging.getLogger('ring-tv-bridge')


class CredentialStore:
    """Owns the env file that holds API_TOKEN."""

    def __init__(self, env_file: str | Path):
        self.env_file = Path(env_file)

    def rotate(self, rotation: TokenRotation) -> None:
        """Replace the old token with the new one in the env file.

        No-op when there was no previous token. The read-modify-write is not
        locked; a concurrent external edit of the file can be lost.

        Raises:
            ConfigWriteError: if the file cannot be read or written.
        """
        logger.info("Refresh token updated")  # never log the token itself
        if not rotation.old_token:
            return

        try:
            current = self.env_file.read_text()
        except OSError as e:
            raise ConfigWriteError(f"Cannot read {self.env_file}: {e}") from e

        if rotation.old_token not in current:
            logger.warning("Previous refresh token not found in %s; file left unchanged", self.env_file)
            return

        updated = current.replace(rotation.old_token, rotation.new_token, 1)
        try:
            self.env_file.write_text(updated)
        except OSError as e:
            raise ConfigWriteError(f"Cannot write {self.env_file}: {e}") from e
        logger.debug("Wrote rotated refresh token to %s", self.env_file)
