# services/kitchen_security.py
"""
Kitchen security gate.

A request runs through an ordered, immutable tuple of links. Each link
either raises (request rejected), returns FORWARD (next link decides) or
returns AUTHORIZED (stop, request proceeds). Falling off the end of the
chain means authorized.

    EndpointScopeLink -> TokenPresenceLink -> TokenValueLink
"""

import hmac
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from exceptions import AuthenticationRequired, AuthorizationDenied
from logger import get_logger

log = get_logger("kitchen_security")

FORWARD = True
AUTHORIZED = False

# (method, path shape); "*" matches exactly one non-empty path segment
PROTECTED_ENDPOINTS: Tuple[Tuple[str, str], ...] = (
    ("GET", "/orders"),
    ("DELETE", "/orders"),
    ("DELETE", "/orders/*"),
    ("PATCH", "/orders/*/status"),
)


@dataclass(frozen=True)
class AuthorizationRequest:
    method: str
    path: str
    token: Optional[str] = None


def path_matches(pattern: str, path: str) -> bool:
    pattern_parts = pattern.strip("/").split("/")
    path_parts = (path or "").strip("/").split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    for want, got in zip(pattern_parts, path_parts):
        if want == "*":
            if not got:
                return False
        elif want != got:
            return False
    return True


class EndpointScopeLink:
    """Decides whether the request needs a kitchen token at all."""

    def __init__(self, protected: Iterable[Tuple[str, str]] = PROTECTED_ENDPOINTS):
        self.protected = tuple((m.upper(), p) for m, p in protected)

    def requires_kitchen_auth(self, method: str, path: str) -> bool:
        method = (method or "").upper()
        if method == "OPTIONS":
            return False
        return any(method == m and path_matches(p, path) for m, p in self.protected)

    def handle(self, request: AuthorizationRequest) -> bool:
        if not self.requires_kitchen_auth(request.method, request.path):
            return AUTHORIZED
        return FORWARD


class TokenPresenceLink:

    def handle(self, request: AuthorizationRequest) -> bool:
        token = request.token
        if token is None or not token.strip():
            log.warning(f"Missing kitchen token: {request.method} {request.path}")
            raise AuthenticationRequired()
        return FORWARD


class TokenValueLink:

    def __init__(self, expected_token: str):
        self._expected = (expected_token or "").encode("utf-8")

    def handle(self, request: AuthorizationRequest) -> bool:
        given = (request.token or "").encode("utf-8")
        # an unset secret never authorizes anything
        if not self._expected or not hmac.compare_digest(given, self._expected):
            log.warning(f"Invalid kitchen token: {request.method} {request.path}")
            raise AuthorizationDenied()
        return FORWARD


class KitchenSecurityChain:

    def __init__(self, links: Iterable):
        self.links = tuple(links)

    def handle(self, request: AuthorizationRequest) -> None:
        for link in self.links:
            if link.handle(request) is AUTHORIZED:
                return


def build_kitchen_security_chain(expected_token: str,
                                 protected: Iterable[Tuple[str, str]] = PROTECTED_ENDPOINTS) -> KitchenSecurityChain:
    return KitchenSecurityChain((
        EndpointScopeLink(protected),
        TokenPresenceLink(),
        TokenValueLink(expected_token),
    ))
