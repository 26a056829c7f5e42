"""
identity.py — Basket Owner Resolution

Maps a request to the key that owns its basket: the authenticated user name
when the upstream auth layer supplied one, otherwise a durable anonymous token
kept in a long-lived cookie.
"""

import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from fastapi import Request, Response

from .config import Settings


@dataclass(frozen=True)
class OwnerIdentity:
    owner_key: str
    authenticated: bool
    issued_token: bool = False


def resolve_owner_key(authenticated_name: Optional[str], cookies: Mapping[str, str], cookie_name: str) -> OwnerIdentity:
    """
    Resolves the basket owner without touching the response.

    Args:
        authenticated_name (Optional[str]): User name of a signed-in caller.
        cookies (Mapping[str, str]): Request cookies.
        cookie_name (str): Name of the anonymous basket cookie.

    Returns:
        OwnerIdentity: `issued_token` is True when a new anonymous token was
        generated and still has to be persisted by the caller.
    """
    if authenticated_name:
        return OwnerIdentity(owner_key=authenticated_name, authenticated=True)

    token = cookies.get(cookie_name)
    if token:
        return OwnerIdentity(owner_key=token, authenticated=False)

    return OwnerIdentity(owner_key=str(uuid.uuid4()), authenticated=False, issued_token=True)


class IdentityResolver:
    """
    Request-level resolver. Newly issued anonymous tokens must be written to
    the outgoing response with `persist`, whichever response the endpoint returns.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def resolve(self, request: Request) -> OwnerIdentity:
        return resolve_owner_key(
            request.headers.get(self.settings.auth_user_header),
            request.cookies,
            self.settings.basket_cookie_name,
        )

    def persist(self, response: Response, identity: OwnerIdentity) -> Response:
        if identity.issued_token:
            response.set_cookie(
                key=self.settings.basket_cookie_name,
                value=identity.owner_key,
                max_age=self.settings.basket_cookie_max_age,
                httponly=True,
                samesite="lax",
            )
        return response
