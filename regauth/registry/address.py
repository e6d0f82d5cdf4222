"""Canonical form of registry addresses used as credential keys."""

from __future__ import annotations


def normalize_address(address: str) -> str:
    """Return *address* without trailing ``/`` characters.

    ``myregistry.example.com/`` and ``myregistry.example.com`` designate the
    same registry. Schemes and letter case are left untouched, so
    ``https://myregistry.example.com`` stays a distinct key.

    Args:
        address: Registry address as declared by the user or found in a
            config file.

    Returns:
        The normalized address.
    """
    return address.rstrip("/")
