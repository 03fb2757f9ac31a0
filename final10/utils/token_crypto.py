"""
Key generation, parsing, and hashing utilities for Shield ingest keys.

Responsibilities:
- Generate key strings of the form: f10_sk_<key_id>_<secret>
- Hash secrets and account passwords with Argon2id
- Provide helpers to derive display prefix and last four for UI
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from argon2.low_level import Type

_argon2 = PasswordHasher(time_cost=2, memory_cost=102400, parallelism=8, hash_len=32, type=Type.ID)


KEY_PREFIX = "f10_sk_"


@dataclass(frozen=True)
class ParsedKey:
    key_id: str
    secret: str


def generate_key_id() -> str:
    """Return a short hex key id suitable for DB lookup and logs."""
    # hex keeps '_' out of the id so parsing can split once
    return uuid.uuid4().hex[:16]


def generate_secret(length: int = 32) -> str:
    """Return a high-entropy url-safe secret string."""
    return secrets.token_urlsafe(length)


def build_key_string(key_id: str, secret: str) -> str:
    return f"{KEY_PREFIX}{key_id}_{secret}"


def parse_key(key: str) -> Optional[ParsedKey]:
    """Parse a key string into key_id and secret.

    Returns None if format is invalid.
    """
    if not key or not key.startswith(KEY_PREFIX):
        return None
    body = key[len(KEY_PREFIX):]
    # the secret may contain '_' so split once
    idx = body.find("_")
    if idx <= 0:
        return None
    key_id = body[:idx]
    secret = body[idx + 1:]
    if not key_id or not secret:
        return None
    return ParsedKey(key_id=key_id, secret=secret)


def hash_secret(secret: str) -> str:
    """Hash a secret or password with Argon2id."""
    return _argon2.hash(secret)


def verify_secret(secret: str, encoded_hash: str) -> bool:
    if not secret or not encoded_hash:
        return False
    try:
        return _argon2.verify(encoded_hash, secret)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def derive_display_parts(full_key: str) -> Tuple[str, str]:
    """Return (prefix, last_four) for UI display.

    Prefix: first 8 chars of the key body (after f10_sk_)
    Last four: last 4 chars of the secret part
    """
    if not full_key.startswith(KEY_PREFIX):
        return "", ""
    body = full_key[len(KEY_PREFIX):]
    parsed = parse_key(full_key)
    return body[:8], (parsed.secret[-4:] if parsed else "")


def generate_key() -> Tuple[str, str, str]:
    """Generate a new key and return (key_id, secret, full_key)."""
    kid = generate_key_id()
    sec = generate_secret()
    return kid, sec, build_key_string(kid, sec)
