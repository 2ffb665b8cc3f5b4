"""Settings persistence with atomic writes and environment overrides.

This module handles the persistent, non-secret state of mfacli:

* **State directory** -- ``$MFACLI_HOME`` when set, otherwise the current
  working directory, so each checkout can point at its own tenant. See
  :func:`get_state_dir`.
* **Settings** -- a single ``.settings`` JSON file holding the tenant
  ``domain`` and ``clientId``, deserialised into
  :class:`~mfacli.models.Settings`. Managed via :func:`load_settings` and
  :func:`save_settings`.
* **Precedence resolution** -- :func:`resolve_settings` layers the
  ``MFACLI_DOMAIN`` / ``MFACLI_CLIENT_ID`` environment variables over the
  file.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so that an interrupted write never leaves a truncated
file behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from mfacli.exceptions import ConfigError
from mfacli.models import Settings

SETTINGS_FILENAME = ".settings"
TOKEN_FILENAME = ".access-token"

ENV_HOME = "MFACLI_HOME"
ENV_DOMAIN = "MFACLI_DOMAIN"
ENV_CLIENT_ID = "MFACLI_CLIENT_ID"


# --- Paths ---


def get_state_dir() -> Path:
    """Return the directory holding ``.settings`` and ``.access-token``.

    Returns:
        ``$MFACLI_HOME`` (created if missing) or the current working
        directory.
    """
    env_value = os.environ.get(ENV_HOME, "")
    if env_value:
        path = Path(env_value).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path
    return Path.cwd()


def get_logs_dir() -> Path:
    """Return the crash-log directory (``<state_dir>/logs``), creating it if necessary."""
    path = get_state_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def settings_path() -> Path:
    """Path to the settings file."""
    return get_state_dir() / SETTINGS_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f"{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def load_settings() -> Optional[Settings]:
    """Load the settings file.

    Returns:
        The deserialised :class:`~mfacli.models.Settings`, or ``None`` if
        the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = settings_path()
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Settings.model_validate(data)
    except (json.JSONDecodeError, ValidationError, OSError) as exc:
        raise ConfigError(f"Invalid settings at {path}: {exc}") from exc


def save_settings(settings: Settings) -> Path:
    """Persist *settings* atomically and return the file path."""
    path = settings_path()
    data = settings.model_dump(mode="json", by_alias=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def resolve_settings() -> Optional[Settings]:
    """Resolve the effective settings.

    Precedence (high to low):
        1. ``MFACLI_DOMAIN`` / ``MFACLI_CLIENT_ID`` environment variables
        2. The ``.settings`` file in the state directory

    Returns:
        The merged settings, or ``None`` when neither source provides both
        values.

    Raises:
        ConfigError: If the settings file is corrupt or a merged value is
            invalid.
    """
    env_domain = os.environ.get(ENV_DOMAIN) or None
    env_client_id = os.environ.get(ENV_CLIENT_ID) or None

    stored: Optional[Settings] = None
    if not (env_domain and env_client_id):
        stored = load_settings()

    domain = env_domain or (stored.domain if stored else None)
    client_id = env_client_id or (stored.client_id if stored else None)
    if not domain or not client_id:
        return None

    try:
        return Settings(domain=domain, client_id=client_id)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
