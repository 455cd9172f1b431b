"""
On-disk token persistence for the CLI.

The token file holds a bearer credential: the directory is created 0700 and
the file written 0600.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class TokenStore:
    """JSON token file, e.g. ~/.config/monzo-bridge/token.json."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        """
        Read the saved token.

        Returns:
            The token dict, or None if there is no usable token file
        """
        try:
            with open(self.path) as f:
                token = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable token file {self.path}: {e}")
            return None

        if not isinstance(token, dict) or not token.get("access_token"):
            logger.warning(f"Ignoring token file without access_token: {self.path}")
            return None
        return token

    def save(self, token: Mapping[str, Any]) -> None:
        """Write the token, replacing any previous one."""
        self.path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)

        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(dict(token), f, indent=2)
        # O_CREAT mode does not apply to an existing file
        os.chmod(self.path, 0o600)

        logger.debug(f"Token saved to {self.path}")

    def clear(self) -> bool:
        """Delete the token file. Returns True if one existed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
