"""Tiered access to provider models.

Every capability (the model a caller asks for) has a minimum access tier.
The mapping is fixed at import time and read without locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

from writing_coach.core.errors import ModelAccessDeniedError, ValidationAppError

logger = logging.getLogger(__name__)


class AccessTier(IntEnum):
    """Caller authorization levels, ordered from least to most privileged."""

    FREE = 0
    AUTHENTICATED = 1
    PREMIUM = 2

    @property
    def label(self) -> str:
        return self.name.title()


class Capability(str, Enum):
    """Models a caller may request."""

    GPT_4O_MINI = "gpt-4o-mini"
    GPT_41_MINI = "gpt-4.1-mini"
    GPT_4O = "gpt-4o"
    GPT_41 = "gpt-4.1"
    O3 = "o3"


@dataclass(frozen=True)
class CapabilityRequirement:
    """Provider model id and minimum tier for one capability."""

    provider_model: str
    required_tier: AccessTier


CAPABILITY_REQUIREMENTS: dict[Capability, CapabilityRequirement] = {
    Capability.GPT_4O_MINI: CapabilityRequirement("gpt-4o-mini", AccessTier.FREE),
    Capability.GPT_41_MINI: CapabilityRequirement("gpt-4.1-mini", AccessTier.FREE),
    Capability.GPT_4O: CapabilityRequirement("gpt-4o", AccessTier.AUTHENTICATED),
    Capability.GPT_41: CapabilityRequirement("gpt-4.1", AccessTier.AUTHENTICATED),
    Capability.O3: CapabilityRequirement("o3", AccessTier.PREMIUM),
}

DEFAULT_CAPABILITY = Capability.GPT_4O_MINI

_DENIAL_HINTS = {
    AccessTier.AUTHENTICATED: "Sign in to unlock this model.",
    AccessTier.PREMIUM: "This model requires a premium plan.",
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    required_tier: AccessTier


def parse_capability(value: str | Capability) -> Capability:
    """Resolve a requested model identifier to a known capability.

    Raises:
        ValidationAppError: If the identifier is not one of the fixed set.
    """
    if isinstance(value, Capability):
        return value
    try:
        return Capability(value)
    except ValueError:
        raise ValidationAppError(
            code="invalid_model",
            message="Invalid AI model selected",
            details={
                "hint": "Supported models: " + ", ".join(c.value for c in Capability),
            },
        ) from None


def provider_model_for(capability: Capability) -> str:
    return CAPABILITY_REQUIREMENTS[capability].provider_model


def authorize(capability: Capability, tier: AccessTier, *, is_admin: bool = False) -> AccessDecision:
    """Decide whether a caller on ``tier`` may use ``capability``.

    Admins are always allowed regardless of the configured tier.
    """
    required = CAPABILITY_REQUIREMENTS[capability].required_tier
    if is_admin:
        return AccessDecision(allowed=True, required_tier=required)
    return AccessDecision(allowed=tier >= required, required_tier=required)


def enforce_model_access(capability: Capability, tier: AccessTier, *, is_admin: bool = False) -> None:
    """Raise ModelAccessDeniedError when ``authorize`` denies the caller."""
    decision = authorize(capability, tier, is_admin=is_admin)
    if decision.allowed:
        return

    logger.warning(
        "model_access.denied",
        extra={
            "model": capability.value,
            "required_tier": decision.required_tier.label,
            "caller_tier": tier.label,
        },
    )
    raise ModelAccessDeniedError(
        code="model_access_denied",
        message=_DENIAL_HINTS.get(decision.required_tier, "This model is not available on your plan."),
        details={"required_tier": decision.required_tier.label, "model": capability.value},
    )
