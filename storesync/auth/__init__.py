"""
Caller identity from bearer tokens.
"""

from storesync.auth.dependencies import (
    CurrentUser,
    TokenVerificationError,
    get_current_user,
    get_current_user_id,
    verify_token,
)

__all__ = [
    "CurrentUser",
    "TokenVerificationError",
    "get_current_user",
    "get_current_user_id",
    "verify_token",
]
