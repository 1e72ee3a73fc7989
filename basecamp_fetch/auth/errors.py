"""Domain-specific error types for the auth module."""


class AuthError(Exception):
    """OAuth authorization or token cache failure."""
