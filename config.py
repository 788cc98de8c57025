# Configuration settings
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path

BASE_DIR = Path(__file__).parent.resolve()

DEV_JWT_SECRET = "please_set_MICROSOCIAL_JWT_SECRET_in_env"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 60 * 60, "d": 60 * 60 * 24}


def parse_duration(value) -> int:
    """
    Parse a token lifetime into seconds.

    Accepts a bare number of seconds or a number with one of the suffixes
    s, m, h, d ("7d", "12h").
    """
    if isinstance(value, int):
        return value
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


def database_path(connection_string: str) -> str:
    if connection_string.startswith("sqlite:///"):
        return connection_string[len("sqlite:///"):]
    return connection_string


@dataclass(frozen=True)
class Config:
    database: str = str(BASE_DIR / "microsocial.db")
    jwt_secret: str = DEV_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_seconds: int = 60 * 60 * 24 * 7  # default 7 days
    upload_folder: str = str(BASE_DIR / "uploads")
    max_content_length: int = 8 * 1024 * 1024  # 8 MB by default
    cors_origins: str = "*"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    testing: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            database=database_path(env.get("MICROSOCIAL_DATABASE", defaults.database)),
            jwt_secret=env.get("MICROSOCIAL_JWT_SECRET") or DEV_JWT_SECRET,
            jwt_algorithm=env.get("MICROSOCIAL_JWT_ALGORITHM", defaults.jwt_algorithm),
            jwt_expire_seconds=parse_duration(env.get("MICROSOCIAL_JWT_EXPIRE", "7d")),
            upload_folder=env.get("MICROSOCIAL_UPLOAD_FOLDER", defaults.upload_folder),
            max_content_length=int(
                env.get("MICROSOCIAL_MAX_CONTENT_LENGTH", defaults.max_content_length)
            ),
            cors_origins=env.get("MICROSOCIAL_CORS_ORIGINS", defaults.cors_origins),
            log_level=env.get("MICROSOCIAL_LOG_LEVEL", defaults.log_level),
            host=env.get("HOST", defaults.host),
            port=int(env.get("PORT", defaults.port)),
        )

    def override(self, **changes) -> "Config":
        if "database" in changes:
            changes["database"] = database_path(changes["database"])
        if "jwt_expire_seconds" in changes:
            changes["jwt_expire_seconds"] = parse_duration(changes["jwt_expire_seconds"])
        return replace(self, **changes)
