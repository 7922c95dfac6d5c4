"""Prompt construction for the writing coach.

Pure functions: the same request always yields the same prompt text.
"""

from __future__ import annotations

from writing_coach.schemas.coach import (
    CoachRequest,
    Goal,
    ProficiencyLevel,
    Register,
    TargetLanguage,
    WritingContext,
)

# Prompt version, bump when wording changes in a way that affects output shape.
PROMPT_VERSION = "v3"

LANGUAGE_NAMES = {
    TargetLanguage.GERMAN: "German",
    TargetLanguage.SPANISH: "Spanish",
    TargetLanguage.FRENCH: "French",
    TargetLanguage.ITALIAN: "Italian",
    TargetLanguage.PORTUGUESE: "Portuguese",
    TargetLanguage.DUTCH: "Dutch",
}

ERROR_CATEGORIES = {
    "ORTHOGRAPHY": "spelling, capitalization, false friends",
    "COLLOCATION": "fixed expressions, idioms, word combinations",
    "REGISTER": "formal/informal mismatch or inconsistency",
    "CLAUSE_STRUCTURE": "verb order in subordinate clauses, modal stacking",
    "VERB_PATTERN": "verb + preposition + case",
    "STYLE_CONCISION": "wordiness, unnatural or overly literal phrasing",
}

_REGISTER_RULES = {
    Register.COLLOQUIAL: (
        "The user chose a COLLOQUIAL register. Informal address and casual expressions are "
        "expected; do NOT flag them. Focus on grammar, clarity and natural colloquial phrasing."
    ),
    Register.NEUTRAL: (
        "The user chose a NEUTRAL register. Either informal or formal address may fit; only "
        "flag register when the text mixes both."
    ),
    Register.FORMAL: (
        "The user chose a FORMAL register. Flag informal address and casual expressions and "
        "recommend formal, professional phrasing."
    ),
}

_CONTEXT_DESCRIPTIONS = {
    WritingContext.GENERAL: "general communication",
    WritingContext.RECRUITER: "an email to a recruiter",
    WritingContext.COVER_LETTER: "a cover letter",
    WritingContext.BEHOERDEN: "a letter to a government office",
    WritingContext.LANDLORD: "an email to a landlord",
    WritingContext.BANK: "communication with a bank",
    WritingContext.INSURANCE: "communication with an insurance company",
}

_GOAL_DESCRIPTIONS = {
    Goal.CORRECT: "correct grammar and spelling",
    Goal.SHORTEN: "make it more concise",
    Goal.CLARIFY: "make it clearer and easier to understand",
    Goal.PERSUADE: "make it more persuasive",
    Goal.DIPLOMATIC: "make it more diplomatic and tactful",
}

RESPONSE_SCHEMA = """
{
  "minimalFix": "corrected text preserving the original meaning exactly",
  "upgradedText": "natural, idiomatic, level-appropriate version",
  "registerNote": "only if formal/informal address is mixed, otherwise null",
  "alternative": {
    "originalPhrase": "the ambiguous phrase",
    "primaryMeaning": "the reading used in upgradedText",
    "alternativeMeaning": "the other plausible reading",
    "alternativeText": "full upgraded text using the other reading"
  },
  "variants": {"colloquial": "... or null", "neutral": "... or null", "formal": "... or null"},
  "feedback": [
    {"issue": "...", "whyItMatters": "...", "quickRule": "...", "example": "before -> after", "tag": "CATEGORY"}
  ],
  "phraseBank": [
    {
      "phrase": "concrete phrase from upgradedText",
      "pattern": "abstract pattern with slots",
      "translation": "English meaning",
      "level": "A1|A2|B1|B2|C1|C2",
      "grammaticalInfo": "case requirements or null",
      "notes": "usage notes or null",
      "tags": ["verb-prep", "idiom", "connector"]
    }
  ],
  "errorTags": ["CATEGORY"]
}
""".strip()


def _feedback_language_rules(level: ProficiencyLevel, language: str) -> str:
    if level is ProficiencyLevel.B1:
        return (
            f"The learner is at B1. Write all explanations in English; corrected and upgraded "
            f"text stays in {language}."
        )
    if level is ProficiencyLevel.B2:
        return (
            f"The learner is at B2. Explain in simple {language}, adding English in parentheses "
            f"for grammar terms. Phrase translations are always English."
        )
    return (
        f"The learner is at {level.value}. Write all explanations in {language}. "
        f"Phrase translations are always English."
    )


def build_system_prompt(request: CoachRequest) -> str:
    """Instructions describing the coaching task and the required JSON shape."""
    language = LANGUAGE_NAMES[request.target_language]
    level = request.target_level.value
    categories = "\n".join(f"- {code}: {desc}" for code, desc in ERROR_CATEGORIES.items())

    return f"""
You are a {language} writing coach. The learner is targeting {level} proficiency.
{_feedback_language_rules(request.target_level, language)}

1. MEANING LOCK: understand the intended tense, modality and purpose of every sentence
   before correcting. Never change what the user meant.
2. REGISTER: {_REGISTER_RULES[request.writing_register]}
   The text is {_CONTEXT_DESCRIPTIONS[request.context]}.
3. AMBIGUITY: only when a phrase genuinely has two readings, fill "alternative";
   otherwise set it to null.
4. CORRECTIONS: give a minimal fix, an upgraded {level} version, 3-5 feedback items and
   5-10 reusable phrase patterns from the upgraded text. Each phrase gets its own
   intrinsic CEFR level, independent of the learner's target.

Use ONLY these category codes for "tag" and "errorTags":
{categories}

Respond ONLY with valid JSON of this shape:
{RESPONSE_SCHEMA}
""".strip()


def build_user_prompt(request: CoachRequest) -> str:
    """The learner's text together with the per-request parameters."""
    language = LANGUAGE_NAMES[request.target_language]
    return f"""
Analyze and improve this {language} text.
Context: {_CONTEXT_DESCRIPTIONS[request.context]}
Target register: {request.writing_register.value}
Goal: {_GOAL_DESCRIPTIONS[request.goal]}
Target proficiency: {request.target_level.value}

TEXT TO ANALYZE:
{request.text}
""".strip()
