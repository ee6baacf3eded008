"""Authentication module for the proxy."""

from .api_key import ApiKeyMiddleware, extract_bearer_token, validate_api_key

__all__ = ["ApiKeyMiddleware", "extract_bearer_token", "validate_api_key"]
