"""
Random credential generators — pure, side-effect-free functions.

All generators use the cryptographically secure ``secrets`` module.
"""

from __future__ import annotations

import secrets
import uuid

API_KEY_LENGTH = 32


def generate_api_key(length: int = API_KEY_LENGTH) -> str:
    """Generate an opaque API key of exactly *length* URL-safe characters.

    Draws 6 random bits per output character (base64url alphabet), so a
    32-character key carries 192 bits of entropy.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    # token_urlsafe(n) yields ceil(4n/3) characters; take enough bytes to cover length
    n_bytes = (length * 3 + 3) // 4
    return secrets.token_urlsafe(n_bytes)[:length]


def generate_token_id() -> str:
    """Generate a unique identifier for a signed token (``jti`` claim)."""
    return uuid.uuid4().hex
