"""Registry credential resolution core."""

from regauth.registry.address import normalize_address
from regauth.registry.configfile import parse_credential_file
from regauth.registry.decoder import decode_auth
from regauth.registry.errors import (
    CredentialError,
    CredentialFileNotFoundError,
    CredentialFileSyntaxError,
    MalformedCredentialError,
    PathExpansionError,
    RegistryNotFoundInFileError,
)
from regauth.registry.models import AuthBlock, ResolvedAuthSet, ResolvedCredential
from regauth.registry.resolver import (
    AuthResolver,
    FileSystem,
    LocalFileSystem,
    resolve_auths,
)

__all__ = [
    "AuthBlock",
    "AuthResolver",
    "CredentialError",
    "CredentialFileNotFoundError",
    "CredentialFileSyntaxError",
    "FileSystem",
    "LocalFileSystem",
    "MalformedCredentialError",
    "PathExpansionError",
    "RegistryNotFoundInFileError",
    "ResolvedAuthSet",
    "ResolvedCredential",
    "decode_auth",
    "normalize_address",
    "parse_credential_file",
    "resolve_auths",
]
