"""Decode packed ``auth`` strings from Docker registry config files."""

from __future__ import annotations

import base64
import binascii

from regauth.registry.errors import MalformedCredentialError


def decode_auth(packed: str) -> tuple[str, str]:
    """Decode a base64 ``username:password`` string.

    Only the first ``:`` separates the username from the password, so
    passwords may contain colons.

    Args:
        packed: Standard, padded base64 of ``username:password``.

    Returns:
        A ``(username, password)`` tuple.

    Raises:
        MalformedCredentialError: If *packed* is not valid base64, or does
            not decode to a ``username:password`` pair.
    """
    try:
        data = base64.b64decode(packed, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedCredentialError(f"Invalid base64 in auth value: {exc}") from exc

    userpass = data.split(b":", 1)
    if len(userpass) != 2:
        raise MalformedCredentialError(
            "Failed to read authentication from dockercfg: "
            "auth value does not decode to 'username:password'"
        )
    # Bytes that are not UTF-8 are kept as surrogates.
    username, password = (part.decode("utf-8", "surrogateescape") for part in userpass)
    return username, password
