"""
Process-wide settings read from the environment.

Settings are loaded once at startup and never mutated afterwards. Invalid
values raise `ConfigError` so the service refuses to start instead of running
with an unsafe default (e.g. an empty signing secret).

Recognized variables:
- JWT_SECRET            required, at least 32 bytes
- JWT_ISSUER            default "user-management-api"
- JWT_AUDIENCE          default "user-management-clients"
- JWT_EXPIRE_MINUTES    default 60
- PASSWORD_HASH_SCHEME  "pbkdf2_sha256" (default) or "bcrypt"
- PBKDF2_ITERATIONS     default 210000, minimum 100000
- BCRYPT_ROUNDS         default 12
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

PBKDF2_SCHEME = "pbkdf2_sha256"
BCRYPT_SCHEME = "bcrypt"
PASSWORD_SCHEMES = (PBKDF2_SCHEME, BCRYPT_SCHEME)

MIN_SECRET_BYTES = 32
MIN_PBKDF2_ITERATIONS = 100_000
DEFAULT_PBKDF2_ITERATIONS = 210_000
DEFAULT_EXPIRE_MINUTES = 60
DEFAULT_ISSUER = "user-management-api"
DEFAULT_AUDIENCE = "user-management-clients"


class ConfigError(RuntimeError):
    pass


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from exc


@dataclass(frozen=True)
class JwtSettings:
    secret: str = field(repr=False)
    issuer: str = DEFAULT_ISSUER
    audience: str = DEFAULT_AUDIENCE
    expire_minutes: int = DEFAULT_EXPIRE_MINUTES
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.secret:
            raise ConfigError("JWT_SECRET is not set.")
        if len(self.secret.encode("utf-8")) < MIN_SECRET_BYTES:
            raise ConfigError(f"JWT_SECRET must be at least {MIN_SECRET_BYTES} bytes long.")
        if not self.issuer or not self.audience:
            raise ConfigError("JWT issuer and audience must not be empty.")
        if self.expire_minutes <= 0:
            raise ConfigError("JWT_EXPIRE_MINUTES must be positive.")


@dataclass(frozen=True)
class PasswordSettings:
    scheme: str = PBKDF2_SCHEME
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS
    bcrypt_rounds: int = 12

    def __post_init__(self) -> None:
        if self.scheme not in PASSWORD_SCHEMES:
            raise ConfigError(
                f"PASSWORD_HASH_SCHEME must be one of {', '.join(PASSWORD_SCHEMES)}; got {self.scheme!r}."
            )
        if self.pbkdf2_iterations < MIN_PBKDF2_ITERATIONS:
            raise ConfigError(f"PBKDF2_ITERATIONS must be at least {MIN_PBKDF2_ITERATIONS}.")
        # bcrypt.gensalt() only accepts 4..31.
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigError("BCRYPT_ROUNDS must be between 4 and 31.")


@dataclass(frozen=True)
class Settings:
    jwt: JwtSettings
    password: PasswordSettings


def load_jwt_settings() -> JwtSettings:
    return JwtSettings(
        secret=os.environ.get("JWT_SECRET", "").strip(),
        issuer=env_str("JWT_ISSUER", DEFAULT_ISSUER),
        audience=env_str("JWT_AUDIENCE", DEFAULT_AUDIENCE),
        expire_minutes=env_int("JWT_EXPIRE_MINUTES", DEFAULT_EXPIRE_MINUTES),
    )


def load_password_settings() -> PasswordSettings:
    return PasswordSettings(
        scheme=env_str("PASSWORD_HASH_SCHEME", PBKDF2_SCHEME).lower(),
        pbkdf2_iterations=env_int("PBKDF2_ITERATIONS", DEFAULT_PBKDF2_ITERATIONS),
        bcrypt_rounds=env_int("BCRYPT_ROUNDS", 12),
    )


def load_settings() -> Settings:
    return Settings(jwt=load_jwt_settings(), password=load_password_settings())


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings for the running process (also used as a FastAPI dependency).
    """
    return load_settings()
