"""Auth middleware - extracts user from bearer token or allows anonymous."""

from dataclasses import dataclass

import falcon.asgi

ANONYMOUS = "anonymous"


@dataclass
class RequestUser:
    """User from request context."""

    user_id: str
    email: str | None = None
    username: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id == ANONYMOUS


class AuthMiddleware:
    """Middleware that introspects bearer tokens and sets req.context.user.

    ``req.context.user`` is None for rejected tokens and for requests without
    a token when anonymous access is off; resources answer those with 401.
    """

    def __init__(self, keycloak_provider=None, allow_anonymous: bool = True) -> None:
        self._keycloak = keycloak_provider
        self._allow_anonymous = allow_anonymous

    async def process_request(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Extract user from Authorization header."""
        auth = req.get_header("Authorization")
        if auth and auth.startswith("Bearer "):
            req.context.user = None
            if self._keycloak:
                user = await self._keycloak.decode_token(auth[7:])
                if user:
                    req.context.user = RequestUser(
                        user_id=user.user_id,
                        email=user.email,
                        username=user.username,
                    )
        elif self._allow_anonymous:
            req.context.user = RequestUser(user_id=ANONYMOUS)
        else:
            req.context.user = None
