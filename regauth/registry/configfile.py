"""Parse Docker registry config files (``config.json`` and legacy ``.dockercfg``)."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from importlib import resources
from typing import Any

import jsonschema
from jsonschema.validators import validator_for
from referencing import Registry, Resource

from regauth.registry.decoder import decode_auth
from regauth.registry.errors import CredentialFileSyntaxError, MalformedCredentialError
from regauth.registry.models import ResolvedCredential

logger = logging.getLogger(__name__)

_BASE_URI = "https://regauth/schemas/"

# Shape attempted first, then the legacy one.
_WRAPPED_SCHEMA = "wrapped.schema.json"
_FLAT_SCHEMA = "flat.schema.json"


@lru_cache(maxsize=None)
def _schema_registry() -> Registry:
    """Build a ``referencing`` registry holding every bundled schema."""
    schemas_dir = resources.files("regauth.schemas")
    registry: Registry = Registry()
    for schema_file in schemas_dir.iterdir():
        if not schema_file.name.endswith(".json"):
            continue
        schema_data = json.loads(schema_file.read_text(encoding="utf-8"))
        resource = Resource.from_contents(schema_data)
        registry = registry.with_resource(uri=schema_file.name, resource=resource)
        registry = registry.with_resource(
            uri=_BASE_URI + schema_file.name, resource=resource
        )
    return registry


def _validator(schema_name: str) -> Any:
    """Return a validator for the bundled schema *schema_name*."""
    schema = _schema_registry().contents(_BASE_URI + schema_name)
    validator_cls = validator_for(schema)
    return validator_cls(schema, registry=_schema_registry())


def _select_entries(document: Any) -> dict[str, Any]:
    """Pick the registry entries out of a decoded config document.

    The wrapped ``{"auths": {...}}`` layout wins when it validates and holds
    at least one entry. Otherwise the document must be a flat mapping of
    registry address to entry.
    """
    try:
        _validator(_WRAPPED_SCHEMA).validate(instance=document)
    except jsonschema.ValidationError as exc:
        logger.debug("Config does not match the 'auths' layout: %s", exc.message)
    else:
        auths = document.get("auths") or {}
        if auths:
            return auths

    try:
        _validator(_FLAT_SCHEMA).validate(instance=document)
    except jsonschema.ValidationError as exc:
        raise CredentialFileSyntaxError(
            f"Registry config matches neither the 'auths' nor the legacy layout: {exc.message}"
        ) from exc
    return document


def parse_credential_file(content: bytes | str) -> dict[str, ResolvedCredential]:
    """Parse the content of a Docker registry config file.

    Both the current layout (entries under ``auths``) and the legacy flat
    ``.dockercfg`` layout are understood. Entries with an empty ``auth``
    value are skipped.

    Args:
        content: Raw file content.

    Returns:
        Credentials keyed by the registry address exactly as written in the
        file. Keys are not normalized.

    Raises:
        CredentialFileSyntaxError: If the content is not JSON, or matches
            neither layout.
        MalformedCredentialError: If an ``auth`` value cannot be decoded.
    """
    try:
        document = json.loads(content)
    except ValueError as exc:
        raise CredentialFileSyntaxError(f"Invalid JSON in registry config: {exc}") from exc

    entries = _select_entries(document)

    configs: dict[str, ResolvedCredential] = {}
    for registry, entry in entries.items():
        auth = (entry or {}).get("auth") or ""
        if not auth:
            logger.debug("Skipping registry %s: no auth configured", registry)
            continue
        try:
            username, password = decode_auth(auth)
        except MalformedCredentialError as exc:
            raise MalformedCredentialError(
                f"Could not parse auth for registry '{registry}': {exc}"
            ) from exc
        configs[registry] = ResolvedCredential(
            server_address=registry,
            username=username,
            password=password,
            email=(entry or {}).get("email") or None,
            auth=auth,
        )
    return configs
