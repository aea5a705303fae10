from typing import Optional

from fastapi import Depends, Request

from shopledger.api.errors import http_error
from shopledger.services.auth_service import Actor, Forbidden, Unauthorized, verify_token
from shopledger.utils.log import get_logger

log = get_logger("auth")

TOKEN_COOKIE = "token"

# deleting catalog entries is limited to these roles
CATALOG_ADMIN_ROLES = ("admin", "manager")


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip()
    return None


def optional_actor(request: Request) -> Optional[Actor]:
    return verify_token(_token_from_request(request))


def current_actor(request: Request) -> Actor:
    """Reject the request before any body handling unless a valid token is present."""
    actor = optional_actor(request)
    if actor is None:
        log.info("rejected unauthenticated %s %s", request.method, request.url.path)
        raise http_error(Unauthorized("Unauthorized"))
    return actor


def require_roles(*roles: str):
    def dependency(actor: Actor = Depends(current_actor)) -> Actor:
        if not actor.has_role(*roles):
            raise http_error(Forbidden("Insufficient permissions"))
        return actor

    return dependency
