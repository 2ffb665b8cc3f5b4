"""Persistent access-token store.

The token obtained by a successful grant is written as a raw string to
``.access-token`` in the state directory (see
:func:`~mfacli.config.get_state_dir`). Writes are atomic and the file is
created with ``0o600`` permissions so the bearer token is never
world-readable, even momentarily.

At most one token is stored at a time: :meth:`AccessTokenStore.save`
replaces whatever was there.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from mfacli.config import TOKEN_FILENAME, _atomic_write, get_state_dir


class AccessTokenStore:
    """Read/write/clear the persisted bearer token.

    Args:
        path: Explicit file path. Defaults to ``<state_dir>/.access-token``.

    Example::

        store = AccessTokenStore()
        store.save("tok123")
        assert store.load() == "tok123"
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path if path is not None else get_state_dir() / TOKEN_FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path to the token file."""
        return self._path

    def save(self, access_token: str) -> None:
        """Persist *access_token* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        _atomic_write(self._path, access_token, mode=0o600)

    def load(self) -> Optional[str]:
        """Return the stored token, or ``None`` if absent, unreadable or blank."""
        if not self._path.is_file():
            return None
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return token or None

    def clear(self) -> None:
        """Delete the token file. No-op when it does not exist."""
        self._path.unlink(missing_ok=True)
