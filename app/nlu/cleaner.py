import re
from typing import Optional

from .rules import (
    CLEANUP_RULES,
    FALLBACK_TASK_TEXT,
    MIN_TASK_TEXT_LEN,
    NORMALIZE_RULES,
    apply_rules,
)


def normalize_input(raw_text: str) -> str:
    """Trim the transcript and drop one leading interjection ("okay", "hey", "um", ...)."""
    return apply_rules((raw_text or "").strip(), NORMALIZE_RULES)


def _remove_time_phrase(text: str, matched_text: str) -> str:
    if not matched_text:
        return text
    return re.sub(re.escape(matched_text), " ", text, flags=re.I)


def capitalize_first(text: str) -> str:
    # str.capitalize() would lowercase the rest
    return text[:1].upper() + text[1:]


def clean_task_text(raw_segment: str, matched_text: Optional[str] = None) -> str:
    """
    Turn a raw segment into task text.
    The time phrase goes first: lead-ins like "at"/"on" usually sit right next to it.
    """
    text = _remove_time_phrase(raw_segment, matched_text or "")
    text = apply_rules(text, CLEANUP_RULES).strip()
    text = capitalize_first(text)
    if len(text) < MIN_TASK_TEXT_LEN:
        return FALLBACK_TASK_TEXT
    return text
