"""CLI entry point for regauth."""

from __future__ import annotations

import json
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import click

from regauth.config import (
    DeclarationError,
    load_declarations,
    parse_auth_option,
    parse_config_option,
)
from regauth.registry.errors import CredentialError
from regauth.registry.models import AuthBlock, ResolvedAuthSet
from regauth.registry.resolver import resolve_auths

logger = logging.getLogger(__name__)

_MASK = "********"


def _collect_blocks(
    declaration_paths: tuple[str, ...],
    config_files: tuple[str, ...],
    auths: tuple[str, ...],
) -> list[AuthBlock]:
    """Gather auth blocks from every source.

    Declaration files come first, then ``--config-file`` options, then
    ``--auth`` options, so that later sources override earlier ones for the
    same registry.
    """
    blocks: list[AuthBlock] = []
    try:
        for path in declaration_paths:
            blocks.extend(load_declarations(path))
        blocks.extend(parse_config_option(value) for value in config_files)
        blocks.extend(parse_auth_option(value) for value in auths)
    except (DeclarationError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    return blocks


def _resolve(blocks: list[AuthBlock]) -> ResolvedAuthSet:
    try:
        return resolve_auths(blocks)
    except CredentialError as exc:
        raise click.ClickException(f"Error loading registry auth config: {exc}") from exc


def _render_set(auth_set: ResolvedAuthSet, show_secrets: bool) -> dict[str, Any]:
    """Return the JSON form of *auth_set*, masking secrets unless asked not to."""
    rendered = auth_set.to_registry_config()
    if not show_secrets:
        for entry in rendered.values():
            for key in ("password", "auth"):
                if key in entry:
                    entry[key] = _MASK
    return rendered


def _source_options(func: Any) -> Any:
    """Attach the options selecting where auth blocks come from."""
    options = [
        click.option(
            "-f",
            "--file",
            "declaration_paths",
            multiple=True,
            type=click.Path(exists=True, dir_okay=False),
            help="YAML/JSON file with registry_auth declarations. Can be repeated.",
        ),
        click.option(
            "--config-file",
            "config_files",
            multiple=True,
            help="Docker config file in registry=path format. Can be repeated.",
        ),
        click.option(
            "--auth",
            "auths",
            multiple=True,
            help="Credentials in registry=user:pass format. Can be repeated.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Enable verbose (DEBUG) logging.",
)
def main(verbose: bool) -> None:
    """regauth — Docker registry credential resolution."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@main.command()
@_source_options
@click.option(
    "--show-secrets",
    is_flag=True,
    default=False,
    help="Print passwords and auth values instead of masking them.",
)
@click.option(
    "--pretty/--no-pretty",
    default=True,
    help="Pretty-print the JSON output (default: on).",
)
@click.option(
    "--header",
    is_flag=True,
    default=False,
    help="Print the X-Registry-Config header value instead of JSON.",
)
def resolve(
    declaration_paths: tuple[str, ...],
    config_files: tuple[str, ...],
    auths: tuple[str, ...],
    show_secrets: bool,
    pretty: bool,
    header: bool,
) -> None:
    """Resolve registry credentials and print them."""
    blocks = _collect_blocks(declaration_paths, config_files, auths)
    auth_set = _resolve(blocks)
    click.echo(f"Resolved {len(auth_set)} registry credential(s)", err=True)

    if header:
        click.echo(auth_set.registry_config_header())
        return

    indent = 2 if pretty else None
    click.echo(
        json.dumps(_render_set(auth_set, show_secrets), indent=indent, sort_keys=True)
    )


@main.command()
@_source_options
@click.option(
    "--timeout",
    default=30,
    show_default=True,
    help="HTTP timeout in seconds for each registry.",
)
def check(
    declaration_paths: tuple[str, ...],
    config_files: tuple[str, ...],
    auths: tuple[str, ...],
    timeout: int,
) -> None:
    """Resolve registry credentials and try them against each registry."""
    from regauth.registry.client import RegistryClient

    blocks = _collect_blocks(declaration_paths, config_files, auths)
    auth_set = _resolve(blocks)

    failed = 0
    for address, cred in sorted(auth_set.items()):
        client = RegistryClient(
            address,
            username=cred.username,
            password=cred.password,
            timeout=timeout,
        )
        status = client.check_auth()
        if status.ok:
            click.echo(f"  ✓ {address}: {status.message}")
        else:
            failed += 1
            click.echo(f"  ✗ {address}: {status.message}")

    if failed:
        raise click.ClickException(f"{failed} registry check(s) failed.")


@main.command(name="version")
def show_version() -> None:
    """Print the regauth version."""
    try:
        current = version("regauth")
    except PackageNotFoundError:
        current = "0.0.0"
    click.echo(f"regauth version {current}")


if __name__ == "__main__":
    main()
