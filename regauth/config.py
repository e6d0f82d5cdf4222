"""Load auth block declarations from files, CLI options and the environment."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from regauth.registry.models import AuthBlock

logger = logging.getLogger(__name__)

#: Config file consulted when a declaration names neither credentials nor a file.
DEFAULT_CONFIG_FILE = "~/.docker/config.json"

ENV_USERNAME = "DOCKER_REGISTRY_USER"
ENV_PASSWORD = "DOCKER_REGISTRY_PASS"
ENV_CONFIG_FILE = "DOCKER_CONFIG"


class DeclarationError(Exception):
    """Raised when auth block declarations are invalid."""


def load_declarations(
    path: str | Path,
    environ: Mapping[str, str] | None = None,
) -> list[AuthBlock]:
    """Load ``registry_auth`` declarations from a YAML or JSON file.

    Args:
        path: Declarations file. ``.yaml``/``.yml`` files are read as YAML,
            anything else as JSON.
        environ: Environment used for defaults. Defaults to ``os.environ``.

    Returns:
        One :class:`AuthBlock` per declaration, in file order.

    Raises:
        DeclarationError: If the file cannot be read or is invalid.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DeclarationError(f"Cannot read declarations file {path}: {exc}") from exc

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, ValueError) as exc:
        raise DeclarationError(f"Cannot parse declarations file {path}: {exc}") from exc

    return build_blocks(data, environ=environ, source=str(path))


def build_blocks(
    data: Any,
    environ: Mapping[str, str] | None = None,
    source: str = "<declarations>",
) -> list[AuthBlock]:
    """Validate a declarations document and turn it into auth blocks."""
    try:
        jsonschema.validate(instance=data, schema=_load_schema())
    except jsonschema.ValidationError as exc:
        raise DeclarationError(f"Invalid declarations in {source}: {exc.message}") from exc

    env = os.environ if environ is None else environ
    blocks = []
    for index, decl in enumerate(data["registry_auth"]):
        _check_conflicts(decl, index, source)
        blocks.append(_apply_defaults(decl, env))
    logger.debug("Loaded %d auth block(s) from %s", len(blocks), source)
    return blocks


def _check_conflicts(decl: dict[str, str], index: int, source: str) -> None:
    """Reject declarations mixing inline credentials with a config file."""
    if not decl.get("config_file"):
        return
    for key in ("username", "password"):
        if decl.get(key):
            raise DeclarationError(
                f"{source}: registry_auth[{index}].{key} conflicts with "
                f"registry_auth[{index}].config_file"
            )


def _apply_defaults(decl: dict[str, str], env: Mapping[str, str]) -> AuthBlock:
    """Fill absent fields from the environment without creating a conflict."""
    username = decl.get("username")
    password = decl.get("password")
    config_file = decl.get("config_file")

    if not config_file:
        if username is None:
            username = env.get(ENV_USERNAME, "")
        if password is None:
            password = env.get(ENV_PASSWORD, "")
    if not username and config_file is None:
        config_file = env.get(ENV_CONFIG_FILE) or DEFAULT_CONFIG_FILE

    return AuthBlock(
        address=decl["address"],
        username=username or "",
        password=password or "",
        config_file=config_file or "",
    )


def parse_auth_option(value: str) -> AuthBlock:
    """Parse a ``registry=user:pass`` option into an inline :class:`AuthBlock`.

    Raises:
        ValueError: If *value* is not in ``registry=user:pass`` form.
    """
    if "=" not in value:
        raise ValueError(f"Invalid auth '{value}': expected registry=user:pass")
    address, creds = value.split("=", 1)
    if not address or ":" not in creds:
        raise ValueError(f"Invalid auth '{value}': expected registry=user:pass")
    username, password = creds.split(":", 1)
    return AuthBlock(address=address, username=username, password=password)


def parse_config_option(value: str) -> AuthBlock:
    """Parse a ``registry=path`` option into a file-based :class:`AuthBlock`.

    Raises:
        ValueError: If *value* is not in ``registry=path`` form.
    """
    address, sep, config_file = value.partition("=")
    if not sep or not address or not config_file:
        raise ValueError(f"Invalid config file '{value}': expected registry=path")
    return AuthBlock(address=address, config_file=config_file)


def _load_schema() -> dict[str, Any]:
    """Load the declarations JSON Schema from the ``regauth.schemas`` package."""
    schema_ref = resources.files("regauth.schemas").joinpath("declarations.schema.json")
    schema_text = schema_ref.read_text(encoding="utf-8")
    return json.loads(schema_text)  # type: ignore[no-any-return]
