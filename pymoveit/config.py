"""Configuration management for pymoveit.

Settings are resolved from environment variables first, then from the
config file at ``~/.config/pymoveit/config``, then from built-in defaults.
The password is only ever read from the environment or a prompt; it is
never written to disk.
"""

import os
from pathlib import Path
from typing import Optional

from .exceptions import MoveitConfigError

DEFAULT_API_URL = "https://testserver.moveitcloud.com/api/v1"
DEFAULT_POLL_INTERVAL = 10.0

ENV_API_URL = "MOVEIT_API_URL"
ENV_USERNAME = "MOVEIT_USERNAME"
ENV_PASSWORD = "MOVEIT_PASSWORD"
ENV_POLL_INTERVAL = "MOVEIT_POLL_INTERVAL"

_FILE_KEYS = (ENV_API_URL, ENV_USERNAME, ENV_POLL_INTERVAL)


class Config:
    """Layered configuration backed by a ``KEY=value`` file."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pymoveit
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pymoveit"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the config file."""
        return self.config_dir / "config"

    def _read_file(self) -> dict[str, str]:
        path = self.get_config_path()
        if not path.exists():
            return {}

        values: dict[str, str] = {}
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                values[key.strip()] = value.strip()
        return values

    def _get(self, key: str) -> Optional[str]:
        value = os.environ.get(key)
        if value:
            return value
        return self._read_file().get(key) or None

    @property
    def api_url(self) -> str:
        """Base URL of the MOVEit REST API."""
        return (self._get(ENV_API_URL) or DEFAULT_API_URL).rstrip("/")

    @property
    def username(self) -> Optional[str]:
        """Configured account name, if any."""
        return self._get(ENV_USERNAME)

    @property
    def password(self) -> Optional[str]:
        """Password from the environment (never read from the file)."""
        return os.environ.get(ENV_PASSWORD) or None

    @property
    def poll_interval(self) -> float:
        """Remote poll interval in seconds."""
        raw = self._get(ENV_POLL_INTERVAL)
        if raw is None:
            return DEFAULT_POLL_INTERVAL
        try:
            interval = float(raw)
        except ValueError as e:
            raise MoveitConfigError(
                f"{ENV_POLL_INTERVAL} must be a number, got {raw!r}"
            ) from e
        if interval <= 0:
            raise MoveitConfigError(f"{ENV_POLL_INTERVAL} must be positive")
        return interval

    def is_configured(self) -> bool:
        """Check whether a username is available."""
        return self.username is not None

    def save(
        self,
        username: Optional[str] = None,
        api_url: Optional[str] = None,
        poll_interval: Optional[float] = None,
    ) -> Path:
        """Persist settings to the config file.

        Existing values are kept unless overridden.

        Args:
            username: Account name to store
            api_url: API base URL to store
            poll_interval: Poll interval in seconds to store

        Returns:
            Path of the written config file
        """
        values = self._read_file()
        if username:
            values[ENV_USERNAME] = username
        if api_url:
            values[ENV_API_URL] = api_url.rstrip("/")
        if poll_interval is not None:
            values[ENV_POLL_INTERVAL] = str(poll_interval)

        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        with open(path, "w", encoding="utf-8") as f:
            for key in _FILE_KEYS:
                if key in values:
                    f.write(f"{key}={values[key]}\n")
        path.chmod(0o600)
        return path


config = Config()
