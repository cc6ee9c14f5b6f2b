"""Credential primitives: password hashing and session tokens."""

from mwarex.auth.passwords import hash_password, verify_password
from mwarex.auth.tokens import TokenClaims, TokenScope, decode_token, issue_token

__all__ = [
    "hash_password",
    "verify_password",
    "TokenClaims",
    "TokenScope",
    "issue_token",
    "decode_token",
]
