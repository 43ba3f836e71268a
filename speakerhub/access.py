"""
SpeakerHub Backend — Access Control
=====================================

What:  Establishes who is calling and whether their role may perform an
       operation, exposed to routes as FastAPI dependencies.
How:   Strategy pattern. `build_authenticator()` picks one implementation
       when the application is created and stores it on `app.state`:

           TokenAuthenticator  Bearer JWT → identity loaded from the store,
                               role checked against the allowed set
           DemoAuthenticator   fixed demo identity chosen from the request
                               path; every role check passes

Dependencies:
    get_current_identity   401 unless authenticated
    get_optional_identity  None for anonymous callers on public routes
    require_roles(*roles)  401/403 gate for role-restricted routes
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from speakerhub.config import Settings
from speakerhub.database import get_db_session
from speakerhub.exceptions import AuthenticationError, AuthorizationError
from speakerhub.models.profile import Profile, Role
from speakerhub.security import decode_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as seen by services."""
    user_id: str
    email: str
    role: Role


DEMO_ATTENDEE = Identity("demo-user-id", "demo@example.com", Role.ATTENDEE)
DEMO_SPEAKER = Identity("demo-speaker-id", "demo-speaker@example.com", Role.SPEAKER)
DEMO_ADMIN = Identity("demo-admin-id", "demo-admin@example.com", Role.ADMIN)


class Authenticator(ABC):
    """Contract shared by the real and the demo access strategies."""

    @abstractmethod
    async def authenticate(self, request: Request, db: AsyncSession) -> Identity:
        """Return the caller or raise AuthenticationError."""
        ...

    @abstractmethod
    async def authenticate_optional(self, request: Request, db: AsyncSession) -> Optional[Identity]:
        """Like authenticate(), but anonymous callers yield None."""
        ...

    @abstractmethod
    def authorize(self, identity: Identity, allowed: FrozenSet[Role]) -> None:
        """Raise AuthorizationError unless identity.role is in `allowed`."""
        ...


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'.")
    return token.strip()


class TokenAuthenticator(Authenticator):
    """Validates the bearer token and re-reads the identity so deleted accounts lose access."""

    async def authenticate(self, request: Request, db: AsyncSession) -> Identity:
        token = _bearer_token(request)
        if token is None:
            raise AuthenticationError("Authentication required.")
        claims = decode_access_token(token)

        profile = await db.get(Profile, claims.user_id)
        if profile is None:
            logger.warning("Token presented for unknown identity %s", claims.user_id)
            raise AuthenticationError("Account no longer exists.")
        return Identity(user_id=profile.id, email=profile.email, role=profile.role)

    async def authenticate_optional(self, request: Request, db: AsyncSession) -> Optional[Identity]:
        if request.headers.get("Authorization") is None:
            return None
        return await self.authenticate(request, db)

    def authorize(self, identity: Identity, allowed: FrozenSet[Role]) -> None:
        if identity.role in allowed:
            return
        required = " or ".join(sorted(r.value for r in allowed))
        raise AuthorizationError(
            f"Access forbidden: Requires {required} role.",
            context={"role": identity.role.value},
        )


class DemoAuthenticator(Authenticator):
    """
    Frictionless demo access: no token, no role checks.

    Speaker paths act as the demo speaker, admin paths as the demo admin,
    everything else as the demo attendee. The demo identities must exist in
    the store for writes that reference them (bookings, slots).
    """

    def identity_for_path(self, path: str) -> Identity:
        if "/speaker" in path:
            return DEMO_SPEAKER
        if "/admin" in path:
            return DEMO_ADMIN
        return DEMO_ATTENDEE

    async def authenticate(self, request: Request, db: AsyncSession) -> Identity:
        identity = self.identity_for_path(request.url.path)
        logger.info("DEMO MODE: acting as %s for %s", identity.role.value, request.url.path)
        return identity

    async def authenticate_optional(self, request: Request, db: AsyncSession) -> Optional[Identity]:
        return await self.authenticate(request, db)

    def authorize(self, identity: Identity, allowed: FrozenSet[Role]) -> None:
        logger.debug(
            "DEMO MODE: role check bypassed (required: %s)",
            ", ".join(sorted(r.value for r in allowed)),
        )


def build_authenticator(app_settings: Settings) -> Authenticator:
    """Select the access strategy once, at application build time."""
    if app_settings.demo_mode:
        logger.warning("DEMO MODE is ON: authentication and role checks are bypassed")
        return DemoAuthenticator()
    return TokenAuthenticator()


# ══════════════════════════════════════════════════════════════════════════
# FastAPI Dependencies
# ══════════════════════════════════════════════════════════════════════════

def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


async def get_current_identity(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Identity:
    return await authenticator.authenticate(request, db)


async def get_optional_identity(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    authenticator: Authenticator = Depends(get_authenticator),
) -> Optional[Identity]:
    return await authenticator.authenticate_optional(request, db)


def require_roles(*roles: Role) -> Callable:
    """
    Dependency factory for role-restricted routes.

    Example:
        @router.post("/slots")
        async def create_slot(identity: Identity = Depends(require_roles(Role.SPEAKER))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(
        identity: Identity = Depends(get_current_identity),
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Identity:
        authenticator.authorize(identity, allowed)
        return identity

    return dependency
