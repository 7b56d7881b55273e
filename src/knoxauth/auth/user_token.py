"""Read-only access to the cached user token written by ``knox login``.

The login flow stores the OAuth token endpoint's JSON response in a file in
the user's home directory (``~/.knox_user_auth`` by default).  This module
only reads it; every failure (no home directory, missing file, unreadable
file, invalid JSON, wrong shape) is reported as "no token".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from knoxauth.models import CachedUserToken

logger = logging.getLogger(__name__)

DEFAULT_USER_TOKEN_FILE = "~/.knox_user_auth"


class CachedUserTokenStore:
    """Load :class:`~knoxauth.models.CachedUserToken` records from disk.

    Args:
        path: File location.  A leading ``~`` is expanded against the
            current user's home directory at load time.

    Example::

        token = CachedUserTokenStore().load()
        if token is not None:
            print(token.access_token)
    """

    def __init__(self, path: str = DEFAULT_USER_TOKEN_FILE) -> None:
        self._path = path

    @property
    def path(self) -> Optional[Path]:
        """The expanded file path, or ``None`` if the home directory is unknown."""
        try:
            return Path(self._path).expanduser()
        except RuntimeError:
            return None

    def load(self) -> Optional[CachedUserToken]:
        """Return the cached token, or ``None`` if it cannot be read or parsed."""
        path = self.path
        if path is None:
            logger.debug("Home directory unknown, no cached user token")
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("No cached user token at %s: %s", path, exc)
            return None
        try:
            return CachedUserToken.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValueError, ValidationError) as exc:
            logger.debug("Cached user token at %s is malformed: %s", path, exc)
            return None
