"""Normalisation and acceptance rules for generated sections.

Every function here is pure: the outcome depends only on the raw text and the
section kind, so validations can run concurrently from any number of tasks.
"""

import string
from typing import NamedTuple

from app.models.prompt_models import SECTION_SPECS
from app.models.prompt_models import SectionKind
from app.models.prompt_models import SectionSpec
from app.models.prompt_models import ValidationRule

# Tokens that reveal the text came out of a chat exchange
BLOCKED_TOKENS: tuple[str, ...] = ("You:", "AI:", "User:", "LLM", "```")

# List markers, numbering, code ticks, quote marks and whitespace
NOISE_CHARS = "-*[].`\"' \t\r\n" + string.digits

NAME_TRIM_CHARS = "/'\"-"

LINE_BREAK_MARKER = "<br>"
ITEM_SEPARATOR = LINE_BREAK_MARKER + "\n"
BULLET = "- "

MIN_NAME_WORDS = 1
MAX_NAME_WORDS = 5


class ValidationOutcome(NamedTuple):
    cleaned: str
    accepted: bool


def contains_blocked_token(text: str) -> bool:
    return any(token in text for token in BLOCKED_TOKENS)


def strip_noise(text: str) -> str:
    return text.strip(NOISE_CHARS)


def validate_free_form(raw_text: str) -> ValidationOutcome:
    cleaned = strip_noise(raw_text)
    if not cleaned or contains_blocked_token(cleaned):
        return ValidationOutcome(cleaned, False)
    return ValidationOutcome(cleaned, True)


def clean_list_items(raw_text: str) -> list[str]:
    """Return the bulleted items of *raw_text*, dropping empty and blocked lines."""
    items = []
    for line in raw_text.splitlines():
        if contains_blocked_token(line):
            continue
        item = strip_noise(line)
        if not item:
            continue
        items.append(BULLET + item)
    return items


def validate_list(raw_text: str, min_items: int, max_items: int) -> ValidationOutcome:
    items = clean_list_items(raw_text)
    cleaned = ITEM_SEPARATOR.join(items)
    return ValidationOutcome(cleaned, min_items <= len(items) <= max_items)


def validate_short_name(raw_text: str) -> ValidationOutcome:
    lines = raw_text.strip().splitlines()
    first_line = strip_noise(lines[0]) if lines else ""
    words = first_line.split()
    if not MIN_NAME_WORDS <= len(words) <= MAX_NAME_WORDS:
        return ValidationOutcome(first_line, False)
    cleaned = first_line.strip(NAME_TRIM_CHARS).strip()
    return ValidationOutcome(cleaned, bool(cleaned))


def validate_with_spec(raw_text: str, spec: SectionSpec) -> ValidationOutcome:
    if spec.rule is ValidationRule.LIST:
        return validate_list(raw_text, spec.min_items, spec.max_items)
    if spec.rule is ValidationRule.SHORT_NAME:
        return validate_short_name(raw_text)
    return validate_free_form(raw_text)


def validate(raw_text: str, kind: SectionKind) -> ValidationOutcome:
    """Normalise *raw_text* for *kind* and decide whether it is acceptable."""
    return validate_with_spec(raw_text, SECTION_SPECS[kind])
