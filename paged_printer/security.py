"""Request gating for resources fetched by the renderer.

Every sub-resource request of a rendered page goes through
:meth:`RequestGate.allows`. Blocked requests are aborted individually; they
never fail the render.
"""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from typing import Any, Iterable, List
from urllib.parse import unquote, urlsplit, urlunsplit

LOGGER = logging.getLogger("paged_printer.security")

_PASSTHROUGH_SCHEMES = {"data", "about", "blob"}
_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass
class BlockedRequest:
    """A request the gate refused, with the reason it was refused."""

    url: str
    reason: str


def _normalize(path: str) -> str:
    return posixpath.normpath(unquote(path).replace(os.sep, "/"))


def normalize_url(url: str) -> str:
    """Return ``url`` the way the browser reports it on a request.

    Scheme and host are lower-cased, default ports and the fragment dropped,
    and an empty path on a URL with a host becomes ``/``.
    """

    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    host = parts.hostname
    if host:
        if ":" in host:
            host = f"[{host}]"
        try:
            port = parts.port
        except ValueError:
            port = None
        if port is not None and port != _DEFAULT_PORTS.get(scheme):
            host = f"{host}:{port}"
        userinfo, _, _ = netloc.rpartition("@")
        netloc = f"{userinfo}@{host}" if userinfo else host
    path = parts.path or ("/" if netloc else "")
    return urlunsplit((scheme, netloc, path, parts.query, ""))


class RequestGate:
    """Allow-list policy for local and remote resources."""

    def __init__(
        self,
        *,
        allow_local: bool = False,
        allow_remote: bool = False,
        allowed_paths: Iterable[str] = (),
        allowed_domains: Iterable[str] = (),
        always_allow: Iterable[str] = (),
    ) -> None:
        self.allow_local = allow_local
        self.allow_remote = allow_remote
        self.allowed_paths = [str(path) for path in allowed_paths]
        self.allowed_domains = [str(domain) for domain in allowed_domains]
        self.always_allow = {normalize_url(url) for url in always_allow}
        self.blocked: List[BlockedRequest] = []

    def is_path_allowed(self, path: str) -> bool:
        """Return ``True`` when ``path`` lies strictly inside an allowed prefix."""

        if not self.allowed_paths:
            return True

        candidate = _normalize(path)
        for parent in self.allowed_paths:
            relative = posixpath.relpath(candidate, _normalize(parent))
            if (
                relative
                and relative != "."
                and not relative.startswith("..")
                and not posixpath.isabs(relative)
            ):
                return True
        return False

    def is_domain_allowed(self, host: str) -> bool:
        """Return ``True`` when ``host`` is in the allow-list or the list is empty."""

        if not self.allowed_domains:
            return True
        return host in self.allowed_domains

    def check(self, url: str) -> str | None:
        """Return why ``url`` is blocked, or ``None`` when it may be fetched."""

        if normalize_url(url) in self.always_allow:
            return None

        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        if scheme in _PASSTHROUGH_SCHEMES:
            return None

        if scheme == "file":
            if not self.is_path_allowed(parts.path):
                return "path not allowed"
            if not self.allow_local:
                return "local files not allowed"
            return None

        host = parts.netloc
        if host:
            if not (self.is_domain_allowed(host) or self.is_domain_allowed(parts.hostname or host)):
                return "domain not allowed"
            if not self.allow_remote:
                return "remote files not allowed"
        return None

    def allows(self, url: str) -> bool:
        return self.check(url) is None

    async def handle_route(self, route: Any) -> None:
        """Playwright route handler applying this gate to every request."""

        url = route.request.url
        reason = self.check(url)
        if reason is None:
            await route.continue_()
            return

        LOGGER.debug("Blocked request to %s: %s", url, reason)
        self.blocked.append(BlockedRequest(url=url, reason=reason))
        await route.abort()


__all__ = ["BlockedRequest", "RequestGate", "normalize_url"]
