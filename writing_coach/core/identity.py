"""Caller identity and access tier resolution.

The hosting platform authenticates users and forwards the result in a
base64-encoded JSON header (the "client principal"). This module turns those
identity facts into:
- a rate-limit key, namespaced so an IP address can never collide with a
  user id;
- an access tier for the model gate;
- an admin flag that bypasses tier checks.

Decoding is deliberately forgiving: anything that cannot be decoded is
treated as an anonymous caller rather than an error.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
from dataclasses import dataclass, field

from fastapi import Request

from writing_coach.core.config import settings
from writing_coach.core.errors import AuthenticationAppError
from writing_coach.core.model_access import AccessTier

logger = logging.getLogger(__name__)

ROLE_AUTHENTICATED = "authenticated"
ROLE_PREMIUM = "premium"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class IdentityFacts:
    """What the identity provider tells us about the current caller."""

    authenticated: bool = False
    roles: frozenset[str] = field(default_factory=frozenset)
    user_id: str | None = None


ANONYMOUS = IdentityFacts()


@dataclass(frozen=True)
class CallerIdentity:
    """Resolved identity for one request.

    Attributes:
        key: Namespaced rate-limit / partition key (``user:...`` or ``ip:...``).
        tier: Access tier used by the model gate.
        is_admin: Admin override; satisfies every tier check.
        is_authenticated: Whether the caller signed in.
    """

    key: str
    tier: AccessTier
    is_admin: bool = False
    is_authenticated: bool = False

    @property
    def key_hash(self) -> str:
        """Short digest of the key for logs."""
        return hash_caller_key(self.key)


def hash_caller_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def parse_client_principal(encoded: str | None) -> IdentityFacts:
    """Decode the client principal header into identity facts.

    Args:
        encoded: Raw header value (base64 of a JSON object with ``userId``
            and ``userRoles``), or None when absent.

    Returns:
        IdentityFacts; ``ANONYMOUS`` when the header is missing or invalid.

    Examples:
        >>> import base64, json
        >>> raw = json.dumps({"userId": "u1", "userRoles": ["anonymous", "authenticated"]})
        >>> parse_client_principal(base64.b64encode(raw.encode()).decode()).user_id
        'u1'
        >>> parse_client_principal("not base64!!").authenticated
        False
    """
    if not encoded:
        return ANONYMOUS

    try:
        decoded = base64.b64decode(encoded, validate=True)
        payload = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        logger.debug("identity.principal_undecodable")
        return ANONYMOUS

    if not isinstance(payload, dict):
        return ANONYMOUS

    raw_roles = payload.get("userRoles") or []
    roles = frozenset(str(role).lower() for role in raw_roles if role) if isinstance(raw_roles, list) else frozenset()
    user_id = payload.get("userId") or None
    authenticated = ROLE_AUTHENTICATED in roles and bool(user_id)

    return IdentityFacts(
        authenticated=authenticated,
        roles=roles,
        user_id=str(user_id) if user_id else None,
    )


def resolve_caller(facts: IdentityFacts, client_address: str) -> CallerIdentity:
    """Derive the caller key, tier and admin flag from identity facts.

    Args:
        facts: Identity facts for the current caller.
        client_address: Network address used to key anonymous callers.

    Returns:
        CallerIdentity for this request.
    """
    is_admin = ROLE_ADMIN in facts.roles

    if facts.authenticated and facts.user_id:
        tier = AccessTier.PREMIUM if ROLE_PREMIUM in facts.roles else AccessTier.AUTHENTICATED
        return CallerIdentity(
            key=f"user:{facts.user_id}",
            tier=tier,
            is_admin=is_admin,
            is_authenticated=True,
        )

    return CallerIdentity(
        key=f"ip:{client_address or 'unknown'}",
        tier=AccessTier.FREE,
        is_admin=is_admin,
        is_authenticated=False,
    )


def client_address_from(request: Request) -> str:
    """Best-effort client address: first X-Forwarded-For hop, else socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


def identity_facts_from(request: Request) -> IdentityFacts:
    return parse_client_principal(request.headers.get(settings.app.principal_header))


async def get_caller_identity(request: Request) -> CallerIdentity:
    """FastAPI dependency resolving the caller of the current request."""
    return resolve_caller(identity_facts_from(request), client_address_from(request))


async def require_authenticated_caller(request: Request) -> CallerIdentity:
    """FastAPI dependency for endpoints that only make sense for signed-in users.

    Raises:
        AuthenticationAppError: If the caller is anonymous.
    """
    caller = await get_caller_identity(request)
    if not caller.is_authenticated:
        logger.warning(
            "auth.required",
            extra={"path": request.url.path, "key_hash": caller.key_hash},
        )
        raise AuthenticationAppError(
            code="authentication_required",
            message="Sign in to access this resource.",
        )
    return caller


async def require_admin_caller(request: Request) -> CallerIdentity:
    """FastAPI dependency for admin-only endpoints."""
    caller = await require_authenticated_caller(request)
    if not caller.is_admin:
        logger.warning(
            "auth.admin_required",
            extra={"path": request.url.path, "key_hash": caller.key_hash},
        )
        raise AuthenticationAppError(
            code="admin_required",
            message="This operation requires the admin role.",
        )
    return caller
