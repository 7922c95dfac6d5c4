"""Pydantic schemas for coaching requests, results and provider output."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from writing_coach.core.model_access import DEFAULT_CAPABILITY


class CamelModel(BaseModel):
    """Immutable model exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )


class Register(str, Enum):
    COLLOQUIAL = "colloquial"
    NEUTRAL = "neutral"
    FORMAL = "formal"


class Goal(str, Enum):
    CORRECT = "correct"
    SHORTEN = "shorten"
    CLARIFY = "clarify"
    PERSUADE = "persuade"
    DIPLOMATIC = "diplomatic"


class WritingContext(str, Enum):
    GENERAL = "general"
    RECRUITER = "recruiter"
    COVER_LETTER = "cover_letter"
    BEHOERDEN = "behoerden"
    LANDLORD = "landlord"
    BANK = "bank"
    INSURANCE = "insurance"


class ProficiencyLevel(str, Enum):
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


class CefrLevel(str, Enum):
    """Intrinsic level of a phrase, which may sit below the learner's target."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"


class TargetLanguage(str, Enum):
    GERMAN = "de"
    SPANISH = "es"
    FRENCH = "fr"
    ITALIAN = "it"
    PORTUGUESE = "pt"
    DUTCH = "nl"


class CoachRequest(CamelModel):
    """Text submitted for coaching.

    Length bounds and the model identifier are checked by the pipeline so
    that both produce the same ``validation_error`` payload.
    """

    text: str = Field(..., description="Text to analyze and improve.")
    writing_register: Register = Field(
        Register.NEUTRAL, alias="register", description="Register the user is writing in."
    )
    goal: Goal = Field(Goal.CORRECT, description="What the rewrite should achieve.")
    context: WritingContext = Field(WritingContext.GENERAL, description="Who the text is for.")
    target_level: ProficiencyLevel = Field(ProficiencyLevel.C1, description="Target CEFR level.")
    target_language: TargetLanguage = Field(TargetLanguage.GERMAN, description="Language of the text.")
    model: str = Field(DEFAULT_CAPABILITY.value, description="Requested model capability.")


class StyleVariants(CamelModel):
    colloquial: str | None = None
    neutral: str | None = None
    formal: str | None = None


class FeedbackItem(CamelModel):
    """One targeted correction with a reusable rule."""

    issue: str
    why_it_matters: str | None = None
    quick_rule: str | None = None
    example: str | None = None
    tag: str | None = None


class PhraseEntry(CamelModel):
    """Reusable phrase extracted from the upgraded text."""

    phrase: str = Field(..., min_length=1)
    pattern: str | None = None
    translation: str | None = None
    level: str | None = Field(None, description="Intrinsic CEFR level of the phrase itself.")
    grammatical_info: str | None = None
    notes: str | None = None
    tags: tuple[str, ...] = ()


class AlternativeInterpretation(CamelModel):
    """Disclosure of a genuinely ambiguous phrase and its other reading."""

    original_phrase: str
    primary_meaning: str
    alternative_meaning: str
    alternative_text: str


class TokenUsage(CamelModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ProviderCoachOutput(BaseModel):
    """Schema the provider must answer with.

    Any payload that does not validate against this model is treated as
    malformed output.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    minimal_fix: str = Field(..., min_length=1)
    upgraded_text: str = Field(..., min_length=1)
    register_note: str | None = None
    alternative: AlternativeInterpretation | None = None
    variants: StyleVariants | None = None
    feedback: list[FeedbackItem] = Field(default_factory=list)
    phrase_bank: list[PhraseEntry] = Field(default_factory=list)
    error_tags: list[str] = Field(default_factory=list)


class CoachResult(CamelModel):
    """Structured coaching output returned to the caller."""

    original_text: str
    minimal_fix: str = Field(..., description="Corrected text preserving the original meaning.")
    upgraded_text: str = Field(..., description="Natural, level-appropriate rewrite.")
    variants: StyleVariants | None = None
    feedback: tuple[FeedbackItem, ...] = ()
    phrase_bank: tuple[PhraseEntry, ...] = ()
    error_tags: tuple[str, ...] = ()
    register_note: str | None = None
    alternative: AlternativeInterpretation | None = None
    model_used: str
    usage: TokenUsage | None = None
