"""Resolve declared auth blocks into a single set of registry credentials."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from regauth.registry.address import normalize_address
from regauth.registry.configfile import parse_credential_file
from regauth.registry.errors import (
    CredentialFileNotFoundError,
    CredentialFileSyntaxError,
    MalformedCredentialError,
    PathExpansionError,
    RegistryNotFoundInFileError,
)
from regauth.registry.models import AuthBlock, ResolvedAuthSet, ResolvedCredential

logger = logging.getLogger(__name__)


class FileSystem(Protocol):
    """Operating-system access needed by :class:`AuthResolver`."""

    def resolve_home(self) -> str:
        """Return the current user's home directory."""

    def read_file(self, path: str) -> bytes:
        """Return the full content of *path*."""


class LocalFileSystem:
    """:class:`FileSystem` backed by the local machine."""

    def resolve_home(self) -> str:
        return str(Path.home())

    def read_file(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()


class AuthResolver:
    """Turn :class:`AuthBlock` declarations into a :class:`ResolvedAuthSet`.

    Args:
        fs: Filesystem access. Defaults to :class:`LocalFileSystem`.
    """

    def __init__(self, fs: FileSystem | None = None) -> None:
        self.fs = fs or LocalFileSystem()

    def resolve(self, blocks: Iterable[AuthBlock]) -> ResolvedAuthSet:
        """Resolve every block, in order.

        Each block contributes one record keyed by its normalized address.
        When several blocks share a normalized address the last one replaces
        the whole record of the previous ones; fields are never merged.

        For each block, a non-empty ``username`` selects the inline
        credentials and any ``config_file`` is ignored. Otherwise a non-empty
        ``config_file`` is read and must hold an entry for the address.
        A block with neither yields an empty credential for its address.

        Raises:
            PathExpansionError: If ``~/`` cannot be expanded.
            CredentialFileNotFoundError: If a config file cannot be read.
            CredentialFileSyntaxError: If a config file is not a valid
                registry config.
            MalformedCredentialError: If a config file holds a bad ``auth``.
            RegistryNotFoundInFileError: If a config file has no entry for
                the block's address.
        """
        # Parsed config files for this pass only, keyed by expanded path.
        parsed: dict[str, dict[str, ResolvedCredential]] = {}
        configs: dict[str, ResolvedCredential] = {}

        for block in blocks:
            address = normalize_address(block.address)

            if block.username:
                if block.config_file:
                    logger.debug(
                        "Ignoring config_file %s for %s: username is set",
                        block.config_file,
                        address,
                    )
                logger.debug("Using inline credentials for %s", address)
                cred = ResolvedCredential(
                    server_address=address,
                    username=block.username,
                    password=block.password,
                )
            elif block.config_file:
                path = self._expand_path(block.config_file)
                if path not in parsed:
                    parsed[path] = self._load(path)
                cred = self._lookup(address, path, parsed[path])
            else:
                logger.debug("No credentials declared for %s", address)
                cred = ResolvedCredential(server_address=address)

            if address in configs:
                logger.debug("Replacing earlier credentials for %s", address)
            configs[address] = cred

        return ResolvedAuthSet(configs)

    def _expand_path(self, path: str) -> str:
        """Replace a leading ``~`` of a ``~/`` path with the home directory."""
        if not path.startswith("~/"):
            return path
        try:
            home = self.fs.resolve_home()
        except (KeyError, RuntimeError, OSError) as exc:
            raise PathExpansionError(
                f"Cannot expand {path}: home directory could not be determined ({exc})"
            ) from exc
        if not home:
            raise PathExpansionError(
                f"Cannot expand {path}: home directory could not be determined"
            )
        return home + path[1:]

    def _load(self, path: str) -> dict[str, ResolvedCredential]:
        """Read and parse the config file at *path*."""
        logger.debug("Reading registry config file %s", path)
        try:
            content = self.fs.read_file(path)
        except OSError as exc:
            raise CredentialFileNotFoundError(path, exc.strerror or str(exc)) from exc

        try:
            return parse_credential_file(content)
        except CredentialFileSyntaxError as exc:
            raise CredentialFileSyntaxError(
                f"Error parsing docker registry config json {path}: {exc}"
            ) from exc
        except MalformedCredentialError as exc:
            raise MalformedCredentialError(
                f"Error parsing docker registry config json {path}: {exc}"
            ) from exc

    @staticmethod
    def _lookup(
        address: str,
        path: str,
        entries: dict[str, ResolvedCredential],
    ) -> ResolvedCredential:
        """Find the entry of *entries* whose normalized key is *address*."""
        for registry, entry in entries.items():
            if normalize_address(registry) == address:
                logger.debug("Using credentials from %s for %s", path, address)
                return ResolvedCredential(
                    server_address=address,
                    username=entry.username,
                    password=entry.password,
                    email=entry.email,
                    auth=entry.auth,
                )
        raise RegistryNotFoundInFileError(address, path)


def resolve_auths(
    blocks: Iterable[AuthBlock],
    fs: FileSystem | None = None,
) -> ResolvedAuthSet:
    """Resolve *blocks* with a fresh :class:`AuthResolver`.

    See :meth:`AuthResolver.resolve`.
    """
    return AuthResolver(fs).resolve(blocks)
