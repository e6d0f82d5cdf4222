"""Value objects flowing through credential resolution."""

from __future__ import annotations

import base64
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from regauth.registry.address import normalize_address


@dataclass(frozen=True)
class AuthBlock:
    """One declared credential source for a registry.

    Attributes:
        address: Registry address (e.g. ``registry.example.com``).
        username: Inline username. Takes precedence when non-empty.
        password: Inline password, used together with ``username``.
        config_file: Path to a Docker config file, consulted when
            ``username`` is empty. A leading ``~/`` is expanded.
    """

    address: str
    username: str = ""
    password: str = field(default="", repr=False)
    config_file: str = ""


@dataclass(frozen=True)
class ResolvedCredential:
    """Credentials for a single registry, shaped like Docker's ``AuthConfig``.

    Attributes:
        server_address: Registry address. Normalized when produced by the
            resolver, raw when produced by the config file parser.
        username: Registry username, possibly empty.
        password: Registry password, possibly empty.
        email: Email found next to the entry in a config file.
        auth: The packed ``auth`` value the credentials were decoded from.
    """

    server_address: str
    username: str = ""
    password: str = field(default="", repr=False)
    email: str | None = None
    auth: str | None = field(default=None, repr=False)

    def to_dict(self) -> dict[str, str]:
        """Return the Docker engine ``AuthConfig`` JSON form, without empty values."""
        data = {
            "username": self.username,
            "password": self.password,
            "auth": self.auth or "",
            "email": self.email or "",
            "serveraddress": self.server_address,
        }
        return {k: v for k, v in data.items() if v}


class ResolvedAuthSet(Mapping[str, ResolvedCredential]):
    """Read-only mapping of normalized registry address to credentials.

    The mapping is built once by a resolution pass and never mutated
    afterwards.
    """

    def __init__(self, configs: Mapping[str, ResolvedCredential] | None = None) -> None:
        self._configs: dict[str, ResolvedCredential] = dict(configs or {})

    def __getitem__(self, address: str) -> ResolvedCredential:
        return self._configs[address]

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)

    def __repr__(self) -> str:
        return f"ResolvedAuthSet({sorted(self._configs)!r})"

    def get_for(self, address: str) -> ResolvedCredential | None:
        """Look up credentials for *address* after normalizing it."""
        return self._configs.get(normalize_address(address))

    def to_registry_config(self) -> dict[str, dict[str, str]]:
        """Return ``{address: AuthConfig}`` as sent in ``X-Registry-Config``."""
        return {addr: cred.to_dict() for addr, cred in self._configs.items()}

    def registry_config_header(self) -> str:
        """Encode every credential for the ``X-Registry-Config`` header."""
        return _encode_header(self.to_registry_config())

    def registry_auth_header(self, address: str) -> str:
        """Encode the credential for *address* for the ``X-Registry-Auth`` header.

        Raises:
            KeyError: If no credential is known for *address*.
        """
        cred = self.get_for(address)
        if cred is None:
            raise KeyError(normalize_address(address))
        return _encode_header(cred.to_dict())


def _encode_header(payload: Any) -> str:
    """Serialize *payload* as URL-safe base64 JSON."""
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii")
