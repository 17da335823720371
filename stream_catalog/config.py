import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

# Load a local .env file if present.
load_dotenv()


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Store
    # -----------------
    # mongodb:// or mongodb+srv:// for MongoDB, memory:// for a process-local store.
    # Required: there is no default, so a missing value cannot silently drop writes.
    MONGODB_URI: str = os.environ.get("MONGODB_URI", "")
    # Used when the URI does not name a database.
    MONGODB_DATABASE: str = os.environ.get("MONGODB_DATABASE", "stream_catalog")

    # -----------------
    # HTTP
    # -----------------
    API_HOST: str = os.environ.get("API_HOST", "0.0.0.0")
    PORT: int = int(os.environ.get("PORT", "5000"))

    # Comma-separated list; "*" allows any origin.
    CORS_ALLOW_ORIGINS: str = os.environ.get("CORS_ALLOW_ORIGINS", "*")

    # -----------------
    # Auth (JWT)
    # -----------------
    # Required, no default. Use a strong random value.
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours

    # Bootstrap first admin user if the users collection is empty.
    # Both must be set; nothing is created otherwise.
    AUTH_BOOTSTRAP_ADMIN_EMAIL: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_EMAIL", "")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "")

    # Print a line per stream write (create/update/delete).
    LOG_WRITES: bool = _env_bool("LOG_WRITES", False) is True

    def missing_settings(self) -> List[str]:
        """Names of required settings that are unset or blank."""
        missing = []
        if not (self.MONGODB_URI or "").strip():
            missing.append("MONGODB_URI")
        if not (self.JWT_SECRET or "").strip():
            missing.append("JWT_SECRET")
        return missing

    def cors_origins(self) -> List[str]:
        return [o.strip() for o in (self.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]


def load_config() -> Config:
    return Config()
