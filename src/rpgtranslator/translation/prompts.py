"""Prompt templates per content class for LLM backends."""

from __future__ import annotations

from dataclasses import dataclass

from rpgtranslator.models import ContentClass, TranslationRequest


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str  # May contain {source}, {target}, {text} and {context}


_COMMON_RULES = (
    "- Preserve special characters, control codes such as \\C[1] or \\N[2], and line breaks\n"
    "- Reply with the translation only, without explanations or quotes"
)

PROMPTS: dict[ContentClass, Prompt] = {
    ContentClass.general: Prompt(
        system=(
            "You are a professional game translator. Translate the given text while:\n"
            "- Maintaining the original meaning and nuance\n"
            "- Keeping a consistent style throughout the game\n"
            "- Not translating proper nouns unless specifically noted\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate the following text from {source} to {target}: "{text}"',
    ),
    ContentClass.name: Prompt(
        system=(
            "You are localizing character names in a game. Your task is to:\n"
            "- Preserve the character's cultural identity if relevant\n"
            "- Keep names easily readable and pronounceable in the target language\n"
            "- Keep honorifics only if crucial to the character\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this character name from {source} to {target}. Context: {context}\nName: "{text}"',
    ),
    ContentClass.dialogue: Prompt(
        system=(
            "You are a professional game dialogue translator. Your task is to:\n"
            "- Maintain character voice and personality\n"
            "- Preserve emotional tone and keep dialogue natural\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this game dialogue from {source} to {target}. Context: {context}\nText: "{text}"',
    ),
    ContentClass.menu: Prompt(
        system=(
            "You are localizing game menu text. Keep translations concise, use "
            "consistent terminology and consider UI space constraints.\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this menu text from {source} to {target}: "{text}"',
    ),
    ContentClass.items: Prompt(
        system=(
            "You are translating game item descriptions. Keep terminology consistent "
            "and preserve stats and numerical values.\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this item text from {source} to {target}. Type: {context}\nText: "{text}"',
    ),
    ContentClass.skills: Prompt(
        system=(
            "You are translating game skill descriptions. Keep terminology consistent "
            "and preserve damage formulas and special values.\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this skill text from {source} to {target}. Type: {context}\nText: "{text}"',
    ),
    ContentClass.adult: Prompt(
        system=(
            "You are a professional translator for mature games. Keep the original "
            "meaning and tone, appropriate for adult audiences.\n"
            f"{_COMMON_RULES}"
        ),
        user='Translate this adult content from {source} to {target}. Context: {context}\nText: "{text}"',
    ),
}


def get_prompt(content_class: ContentClass | None = None) -> Prompt:
    return PROMPTS.get(content_class or ContentClass.general, PROMPTS[ContentClass.general])


def validate_prompt(prompt: Prompt) -> bool:
    return bool(prompt.system.strip()) and bool(prompt.user.strip())


def format_prompt(prompt: Prompt, request: TranslationRequest) -> Prompt:
    """Fill the user template from the request.

    Plain replacement rather than str.format: source text routinely contains
    braces.
    """
    user = (
        prompt.user
        .replace("{source}", request.source_language)
        .replace("{target}", request.target_language)
        .replace("{context}", request.context or "")
        .replace("{text}", request.text)
    )
    return Prompt(system=prompt.system, user=user)
