"""Check resolved credentials against a Docker Registry V2 API."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

# Registry addresses used by Docker Hub in config files.
_DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io"}
_DOCKER_HUB_API = "registry-1.docker.io"

# key="quoted value" or key=token; commas inside quotes belong to the value.
_CHALLENGE_PARAM_RE = re.compile(r'(\w+)=(?:"([^"]*)"|([^,\s]*))')


@dataclass
class AuthStatus:
    """Outcome of a credential check against one registry.

    Attributes:
        registry: The registry address that was checked.
        ok: Whether the registry accepted the credentials.
        status_code: Final HTTP status, ``None`` when the request failed.
        message: Human-readable summary.
    """

    registry: str
    ok: bool
    status_code: int | None
    message: str


class RegistryClient:
    """Minimal client for the ``/v2/`` endpoint of a Docker Registry.

    Handles both Bearer token and Basic challenges.

    Args:
        registry: Registry address, with or without scheme
            (e.g. ``registry.example.com`` or ``https://index.docker.io/v1``).
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        registry: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: int = 30,
    ) -> None:
        self.registry = registry
        self.username = username
        self.password = password
        self.timeout = timeout
        self._base_url = _api_base_url(registry)

    def check_auth(self) -> AuthStatus:
        """Validate the credentials against the registry.

        Returns:
            An :class:`AuthStatus`. Network failures are reported in it
            rather than raised.
        """
        url = self._base_url + "/v2/"
        try:
            logger.debug("GET %s", url)
            with requests.Session() as session:
                resp = session.get(url, timeout=self.timeout)
                if resp.status_code == 401:
                    resp = self._retry_authenticated(session, url, resp)
        except requests.RequestException as exc:
            return AuthStatus(self.registry, False, None, f"request failed: {exc}")

        if resp.status_code == 200:
            return AuthStatus(self.registry, True, 200, "login succeeded")
        return AuthStatus(
            self.registry,
            False,
            resp.status_code,
            f"registry returned {resp.status_code}: {resp.text[:200]}",
        )

    def _credentials(self) -> tuple[str, str] | None:
        if self.username:
            return self.username, self.password or ""
        return None

    def _retry_authenticated(
        self,
        session: requests.Session,
        url: str,
        response: requests.Response,
    ) -> requests.Response:
        """Answer the ``WWW-Authenticate`` challenge of *response* and retry."""
        www_auth = response.headers.get("WWW-Authenticate", "")
        scheme, params = _parse_www_authenticate(www_auth)

        if scheme == "basic":
            logger.debug("Retrying %s with basic auth", url)
            return session.get(url, auth=self._credentials(), timeout=self.timeout)

        realm = params.get("realm")
        if scheme != "bearer" or not realm:
            return response

        query = {k: v for k, v in params.items() if k in ("service", "scope")}
        logger.debug("Authenticating: realm=%s params=%s", realm, query)
        token_resp = session.get(
            realm,
            params=query,
            auth=self._credentials(),
            timeout=self.timeout,
        )
        if token_resp.status_code != 200:
            return token_resp

        body = token_resp.json()
        token = body.get("token") or body.get("access_token")
        if not token:
            return response

        return session.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )


def _api_base_url(registry: str) -> str:
    """Return ``scheme://host`` of the registry API for *registry*."""
    if "://" in registry:
        parsed = urlparse(registry)
        scheme = parsed.scheme or "https"
        host = parsed.netloc
    else:
        scheme = "https"
        host = registry.split("/", 1)[0]
    if host in _DOCKER_HUB_ALIASES:
        host = _DOCKER_HUB_API
    return f"{scheme}://{host}"


def _parse_www_authenticate(header: str) -> tuple[str, dict[str, str]]:
    """Split a ``Bearer realm=...,service=...,scope=...`` header into scheme and params."""
    scheme, _, rest = header.strip().partition(" ")

    params = {
        key: quoted or bare
        for key, quoted, bare in _CHALLENGE_PARAM_RE.findall(rest)
    }
    return scheme.lower(), params
