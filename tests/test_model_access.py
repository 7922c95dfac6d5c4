"""Tests for the tiered model access gate."""

import pytest

from writing_coach.core.errors import ModelAccessDeniedError, ValidationAppError
from writing_coach.core.model_access import (
    CAPABILITY_REQUIREMENTS,
    AccessTier,
    Capability,
    authorize,
    enforce_model_access,
    parse_capability,
    provider_model_for,
)


def test_every_capability_has_a_requirement() -> None:
    assert set(CAPABILITY_REQUIREMENTS) == set(Capability)


def test_free_capability_allowed_anonymously() -> None:
    decision = authorize(Capability.GPT_4O_MINI, AccessTier.FREE)
    assert decision.allowed is True
    assert decision.required_tier is AccessTier.FREE


def test_authenticated_capability_denied_anonymously_allowed_signed_in() -> None:
    assert authorize(Capability.GPT_4O, AccessTier.FREE).allowed is False
    assert authorize(Capability.GPT_4O, AccessTier.AUTHENTICATED).allowed is True
    assert authorize(Capability.GPT_4O, AccessTier.PREMIUM).allowed is True


def test_premium_capability_needs_premium() -> None:
    assert authorize(Capability.O3, AccessTier.AUTHENTICATED).allowed is False
    assert authorize(Capability.O3, AccessTier.PREMIUM).allowed is True


@pytest.mark.parametrize("capability", list(Capability))
@pytest.mark.parametrize("tier", list(AccessTier))
def test_admin_allowed_everywhere(capability: Capability, tier: AccessTier) -> None:
    assert authorize(capability, tier, is_admin=True).allowed is True


def test_enforce_raises_with_required_tier() -> None:
    with pytest.raises(ModelAccessDeniedError) as exc_info:
        enforce_model_access(Capability.GPT_41, AccessTier.FREE)

    assert exc_info.value.code == "model_access_denied"
    assert exc_info.value.required_tier == "Authenticated"
    assert "Sign in" in exc_info.value.message


def test_enforce_passes_silently_when_allowed() -> None:
    assert enforce_model_access(Capability.GPT_41_MINI, AccessTier.FREE) is None


def test_parse_capability_accepts_known_ids() -> None:
    assert parse_capability("gpt-4.1") is Capability.GPT_41
    assert parse_capability(Capability.O3) is Capability.O3


def test_parse_capability_rejects_unknown_ids_as_validation_error() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        parse_capability("gpt-5-ultra")

    assert exc_info.value.code == "invalid_model"


def test_provider_model_mapping() -> None:
    assert provider_model_for(Capability.GPT_4O_MINI) == "gpt-4o-mini"
