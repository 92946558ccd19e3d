"""Credential configuration for the command line tool.

Credentials are resolved in this order, first match wins for each field:

1. explicit values (``--login`` / ``--password``)
2. environment variables ``VITOTROL_LOGIN`` / ``VITOTROL_PASSWORD``, which
   may come from a ``.env`` file loaded with :func:`load_env_file`
3. the credential file (``~/.vitotrol-api`` by default), holding the login
   on its first line and the password on its second one

The credential file must not be readable or writable by other users.

Example:
    load_env_file()
    credentials = load_credentials(login=args.login, config_file=args.config)
    credentials.validate()
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .constants import DEFAULT_CONFIG_FILE, ENV_LOGIN, ENV_PASSWORD
from .exceptions import VitotrolConfigError


@dataclass
class Credentials:
    """Vitotrol account credentials.

    Attributes:
        login: Account login
        password: Account password
        source: Where the credentials came from (for diagnostics)
    """

    login: str
    password: str
    source: str = "arguments"

    def validate(self) -> None:
        """Validate that both fields are set.

        Raises:
            VitotrolConfigError: If the login or the password is empty
        """
        if not self.login:
            raise VitotrolConfigError(f"login is empty (from {self.source})")
        if not self.password:
            raise VitotrolConfigError(f"password is empty (from {self.source})")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict, password masked."""
        return {"login": self.login, "password": "***", "source": self.source}

    def __repr__(self) -> str:
        return f"Credentials(login={self.login!r}, source={self.source!r})"


def load_env_file(path: str | os.PathLike[str] | None = None) -> bool:
    """Load a ``.env`` file into the environment without overriding it.

    Args:
        path: File to load; searched from the current directory upward
            when omitted

    Returns:
        True if a file was found and loaded
    """
    env_path = str(path) if path is not None else find_dotenv(usecwd=True)
    if not env_path:
        return False
    return load_dotenv(env_path)


def read_config_file(path: str | os.PathLike[str]) -> tuple[str, str]:
    """Read login and password from a two-line credential file.

    Raises:
        VitotrolConfigError: If the file is missing, unsafe, or malformed
    """
    config_path = Path(path).expanduser()
    try:
        mode = config_path.stat().st_mode
    except OSError as err:
        raise VitotrolConfigError(
            "--login & --password are mandatory "
            f"EXCEPT if `{config_path}' file exists and is readable"
        ) from err

    if mode & (stat.S_IROTH | stat.S_IWOTH):
        raise VitotrolConfigError(
            f"`{config_path}' file readable and/or writable by others. Abort!"
        )

    try:
        lines = config_path.read_text(encoding="utf-8").splitlines()
    except OSError as err:
        raise VitotrolConfigError(f"Cannot read `{config_path}': {err}") from err

    if len(lines) < 2:
        raise VitotrolConfigError(
            f"Invalid config file `{config_path}' contents, must contain "
            "login and password on two separate lines"
        )
    return lines[0], lines[1]


def load_credentials(
    login: str | None = None,
    password: str | None = None,
    config_file: str | os.PathLike[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Credentials:
    """Resolve credentials from arguments, environment, then credential file.

    The credential file is only read when a field is still missing after
    the arguments and the environment.

    Args:
        login: Explicit login
        password: Explicit password
        config_file: Credential file (default: ``~/.vitotrol-api``)
        environ: Environment mapping (default: ``os.environ``)

    Raises:
        VitotrolConfigError: If the credential file is needed but unusable
    """
    env = os.environ if environ is None else environ
    source = "arguments"

    if not login and env.get(ENV_LOGIN):
        login, source = env[ENV_LOGIN], "environment"
    if not password and env.get(ENV_PASSWORD):
        password, source = env[ENV_PASSWORD], "environment"

    if not login or not password:
        path = config_file if config_file is not None else DEFAULT_CONFIG_FILE
        file_login, file_password = read_config_file(path)
        login = login or file_login
        password = password or file_password
        source = str(Path(path).expanduser())

    return Credentials(login=login, password=password, source=source)
