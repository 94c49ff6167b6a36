"""
Auth security helpers: password hashing and access tokens.

Stored password hashes are self-describing strings:
- pbkdf2_sha256$<iterations>$<salt>$<derived key>   (salt/key base64url, no padding)
- $2b$<rounds>$<salt+hash>                          (bcrypt)

Verification never raises: wrong passwords and malformed hashes both return
False. Token validation never raises either; invalid tokens decode to None.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
import uuid
from functools import lru_cache

import bcrypt
import jwt
from jwt.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from core.settings import BCRYPT_SCHEME, PBKDF2_SCHEME, JwtSettings, PasswordSettings

from .schemas import TokenClaims

logger = logging.getLogger(__name__)

SALT_BYTES = 16
KEY_BYTES = 32
MIN_KEY_BYTES = 16
MAX_KEY_BYTES = 64
# Stored hashes asking for more work than this are treated as corrupt.
MAX_PBKDF2_ITERATIONS = 10_000_000

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
REQUIRED_CLAIMS = ["sub", "unique_name", "email", "jti", "iss", "aud", "iat", "exp"]


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def _b64encode(data: bytes) -> str:
    return base64url_encode(data).decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64url_decode(value)


def _pbkdf2(password: bytes, salt: bytes, iterations: int, length: int = KEY_BYTES) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password, salt, iterations, dklen=length)


def hash_password(plain_password: str, *, settings: PasswordSettings) -> str:
    try:
        password = (plain_password or "").encode("utf-8")
    except UnicodeEncodeError as exc:
        raise AuthSecurityError("Password is not valid UTF-8 text.") from exc
    if not password:
        raise AuthSecurityError("Password is empty.")

    if settings.scheme == BCRYPT_SCHEME:
        try:
            return bcrypt.hashpw(password, bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode("utf-8")
        except ValueError as exc:
            # bcrypt refuses passwords longer than 72 bytes.
            raise AuthSecurityError(f"bcrypt cannot hash this password: {exc}") from exc

    salt = secrets.token_bytes(SALT_BYTES)
    key = _pbkdf2(password, salt, settings.pbkdf2_iterations)
    return "$".join((PBKDF2_SCHEME, str(settings.pbkdf2_iterations), _b64encode(salt), _b64encode(key)))


def _verify_pbkdf2(password: bytes, stored: str) -> bool:
    parts = stored.split("$")
    if len(parts) != 4 or parts[0] != PBKDF2_SCHEME:
        return False

    _, raw_iterations, raw_salt, raw_key = parts
    if not (raw_iterations.isascii() and raw_iterations.isdigit()):
        return False
    iterations = int(raw_iterations)
    if not 0 < iterations <= MAX_PBKDF2_ITERATIONS:
        return False

    try:
        salt = _b64decode(raw_salt)
        expected = _b64decode(raw_key)
    except ValueError:
        return False
    if not salt or not MIN_KEY_BYTES <= len(expected) <= MAX_KEY_BYTES:
        return False

    candidate = _pbkdf2(password, salt, iterations, len(expected))
    return hmac.compare_digest(candidate, expected)


def verify_password(plain_password: str, password_hash: str) -> bool:
    stored = (password_hash or "").strip()
    try:
        password = (plain_password or "").encode("utf-8")
        stored_bytes = stored.encode("utf-8")
    except UnicodeEncodeError:
        return False
    if not password or not stored:
        return False

    if stored.startswith(BCRYPT_PREFIXES):
        try:
            return bcrypt.checkpw(password, stored_bytes)
        except ValueError:
            return False
    return _verify_pbkdf2(password, stored)


@lru_cache(maxsize=8)
def dummy_password_hash(settings: PasswordSettings) -> str:
    """
    Hash of a random throwaway password, built once per settings value.

    Login verifies against it when there is no usable account, so every
    rejection pays the same key-derivation cost.
    """
    return hash_password(secrets.token_urlsafe(16), settings=settings)


def build_access_token(
    *,
    user_id: uuid.UUID | str,
    username: str,
    email: str,
    settings: JwtSettings,
    now: int | None = None,
) -> str:
    issued_at = now_epoch_s() if now is None else int(now)
    expires_at = issued_at + (settings.expire_minutes * 60)

    payload = {
        "sub": str(user_id),
        "unique_name": username,
        "email": email,
        "jti": uuid.uuid4().hex,
        "iss": settings.issuer,
        "aud": settings.audience,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def _has_canonical_signature(token: str) -> bool:
    # base64 decoding ignores the spare bits of the last character, so an
    # edited signature can still decode to the right bytes. Require the
    # segment to be exactly the canonical encoding.
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    try:
        signature = _b64decode(parts[2])
    except ValueError:
        return False
    return _b64encode(signature) == parts[2]


def decode_access_token(token: str, *, settings: JwtSettings) -> TokenClaims | None:
    raw = (token or "").strip()
    if not raw:
        return None

    if not _has_canonical_signature(raw):
        logger.info("access_token_rejected reason=malformed")
        return None

    try:
        payload = jwt.decode(
            raw,
            settings.secret,
            algorithms=[settings.algorithm],
            audience=settings.audience,
            issuer=settings.issuer,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        logger.info("access_token_rejected reason=expired")
        return None
    except jwt.InvalidTokenError as exc:
        logger.info("access_token_rejected reason=%s", type(exc).__name__)
        return None

    try:
        return TokenClaims.model_validate(payload)
    except ValidationError:
        logger.info("access_token_rejected reason=invalid_claims")
        return None
