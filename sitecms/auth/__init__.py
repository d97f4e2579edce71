"""Authentication for sitecms (JWT bearer tokens)."""

from .tokens import create_access_token, get_current_user_optional, require_user

__all__ = ["create_access_token", "get_current_user_optional", "require_user"]
