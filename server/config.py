"""
Centralized configuration for the Golf room server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.ROOM_CODE_ALPHABET)
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


# Letters and digits that can't be confused with each other (no I, L, O, 0, 1)
DEFAULT_ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Room settings
    ROOM_CODE_LENGTH: int = 5
    ROOM_CODE_ALPHABET: str = DEFAULT_ROOM_CODE_ALPHABET
    ROOM_CODE_MAX_ATTEMPTS: int = 100

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        alphabet = get_env("ROOM_CODE_ALPHABET", DEFAULT_ROOM_CODE_ALPHABET).upper()

        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 4000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            ROOM_CODE_LENGTH=max(1, get_env_int("ROOM_CODE_LENGTH", 5)),
            ROOM_CODE_ALPHABET=alphabet or DEFAULT_ROOM_CODE_ALPHABET,
            ROOM_CODE_MAX_ATTEMPTS=max(1, get_env_int("ROOM_CODE_MAX_ATTEMPTS", 100)),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
