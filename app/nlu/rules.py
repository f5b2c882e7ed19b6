"""
Ordered rule tables for transcript normalization, segment boundaries and task text cleanup.

Every table is applied top to bottom; a rule's position in its table is its precedence.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

# Conversational interjections dropped from the very start of a transcript (once)
INTERJECTIONS = [
    "fast", "okay", "ok", "hey", "hi", "hello", "um", "uh", "so", "well", "alright", "right",
]

# Words that explicitly enumerate the next task ("... at 5pm and then call Bob tomorrow")
CONNECTORS = ["and", "then", "also", "plus", "next", "after that"]

# Compound connectors are stripped as one lead-in
LEAD_INS = ["and then", "and also"] + CONNECTORS + ["at", "on", "by", "today", "tomorrow"]
TRAILERS = ["and", "then", "also", "plus"]

EDGE_PUNCT = r"[\s,.\-:;]+"
FALLBACK_TASK_TEXT = "Task scheduled"
MIN_TASK_TEXT_LEN = 2


def _alternation(words: Sequence[str]) -> str:
    # longest first, so "after that" wins over "at" and "and then" over "and"
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


INTERJECTION_RE = re.compile(rf"^(?:{_alternation(INTERJECTIONS)})\s+", re.I)
CONNECTOR_GAP_RE = re.compile(rf"\s+(?:{_alternation(CONNECTORS)})\s+", re.I)
SENTENCE_END_RE = re.compile(r"[.!?]\s+")


@dataclass(frozen=True)
class RewriteRule:
    name: str
    pattern: re.Pattern
    replacement: str = ""
    count: int = 0  # 0 = every match

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text, count=self.count)


@dataclass(frozen=True)
class BoundaryRule:
    """Finds a task boundary inside a gap; `cut` maps the match to an offset relative to the gap."""
    name: str
    pattern: re.Pattern
    cut: Callable[[re.Match], int]

    def find(self, gap_text: str) -> Optional[int]:
        m = self.pattern.search(gap_text)
        if m is None:
            return None
        return self.cut(m)


NORMALIZE_RULES: list[RewriteRule] = [
    RewriteRule("strip_interjection", INTERJECTION_RE, count=1),
]

BOUNDARY_RULES: list[BoundaryRule] = [
    # connector goes with the next task: cut where its leading whitespace starts
    BoundaryRule("connector", CONNECTOR_GAP_RE, cut=lambda m: m.start()),
    # keep the punctuation with this task
    BoundaryRule("sentence_end", SENTENCE_END_RE, cut=lambda m: m.start() + 1),
]

CLEANUP_RULES: list[RewriteRule] = [
    RewriteRule("strip_leading_punct", re.compile(rf"^{EDGE_PUNCT}")),
    RewriteRule("strip_trailing_punct", re.compile(rf"{EDGE_PUNCT}$")),
    RewriteRule("strip_lead_in", re.compile(rf"^(?:{_alternation(LEAD_INS)})\s+", re.I), count=1),
    RewriteRule("strip_trailer", re.compile(rf"\s+(?:{_alternation(TRAILERS)})$", re.I), count=1),
    RewriteRule("collapse_whitespace", re.compile(r"\s+"), replacement=" "),
]


def apply_rules(text: str, rules: Sequence[RewriteRule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def find_boundary(gap_text: str, rules: Sequence[BoundaryRule] = BOUNDARY_RULES) -> Optional[tuple[str, int]]:
    """Return (rule name, offset within gap) of the first rule that fires, or None."""
    for rule in rules:
        offset = rule.find(gap_text)
        if offset is not None:
            return rule.name, offset
    return None
