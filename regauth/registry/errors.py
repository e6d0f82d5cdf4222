"""Errors raised while resolving registry credentials."""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for every registry credential resolution failure."""


class PathExpansionError(CredentialError):
    """Raised when ``~/`` cannot be expanded because the home directory is unknown."""


class CredentialFileNotFoundError(CredentialError):
    """Raised when a registry config file cannot be opened or read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Error opening docker registry config file {path}: {reason}")
        self.path = path
        self.reason = reason


class CredentialFileSyntaxError(CredentialError):
    """Raised when a registry config file matches neither supported JSON shape."""


class MalformedCredentialError(CredentialError):
    """Raised when a packed ``auth`` value is not base64 of ``username:password``."""


class RegistryNotFoundInFileError(CredentialError):
    """Raised when a registry config file holds no entry for the requested address."""

    def __init__(self, address: str, path: str) -> None:
        super().__init__(
            f"Couldn't find registry config for '{address}' in file: {path}"
        )
        self.address = address
        self.path = path
