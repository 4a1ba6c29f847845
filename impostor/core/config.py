"""
Impostor - Configuration
========================

Central configuration from environment variables.
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = ROOT_DIR / "data"
LOGS_DIR = ROOT_DIR / "logs"

DATA_DIR.mkdir(exist_ok=True)
LOGS_DIR.mkdir(exist_ok=True)


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_command(key: str, default: str) -> Tuple[str, ...]:
    """Get environment variable as a shell-split command line."""
    value = os.getenv(key, default)
    try:
        return tuple(shlex.split(value))
    except ValueError:
        return tuple(shlex.split(default))


@dataclass(frozen=True)
class Config:
    """Bot configuration from environment variables."""

    # Bot settings
    TOKEN: str = os.getenv("IMPOSTOR_BOT_TOKEN", "")
    COMMAND_PREFIX: str = os.getenv("IMPOSTOR_COMMAND_PREFIX", "!amongus ")

    # Game client (launched once per session as `<command> <server ip> <code>`)
    CLIENT_COMMAND: Tuple[str, ...] = field(
        default_factory=lambda: _get_env_command("IMPOSTOR_CLIENT_COMMAND", "dotnet client/client.dll")
    )
    CLIENT_CONNECT_TIMEOUT: int = _get_env_int("IMPOSTOR_CLIENT_CONNECT_TIMEOUT", 30)

    # Among Us master servers per region
    SERVER_NORTH_AMERICA: str = os.getenv("IMPOSTOR_SERVER_NA", "66.175.220.120")
    SERVER_EUROPE: str = os.getenv("IMPOSTOR_SERVER_EU", "172.105.251.170")
    SERVER_ASIA: str = os.getenv("IMPOSTOR_SERVER_ASIA", "139.162.111.196")

    # Logging
    TIMEZONE: str = os.getenv("IMPOSTOR_TIMEZONE", "UTC")

    # Database
    DATABASE_PATH: str = os.getenv("IMPOSTOR_DATABASE_PATH", str(DATA_DIR / "impostor.db"))


config = Config()
