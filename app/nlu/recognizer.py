from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import List, Optional, Protocol, Sequence
from zoneinfo import ZoneInfo

import dateparser
import dateparser.search

from app.nlu import config
from app.nlu.rules import CONNECTORS
from app.nlu.spans import RecognizedTimeSpan, Span
from app.nlu.timephrases import SpokenTimeRecognizer
from app.observability.logs import log_event
from app.observability.metrics import record_resort

# Words search_dates glues onto the edges of a match ("at 5pm and", "March the")
LEADING_STOPWORDS = {w for c in CONNECTORS for w in c.split()} | {"the", "a", "of", "to"}
TRAILING_STOPWORDS = LEADING_STOPWORDS | {"this", "on", "at", "by", "in"}
EDGE_CHARS = " \t\r\n,.;:!?-"
DIGIT_RE = re.compile(r"\d")


class RecognizerFailure(Exception):
    """The time recognizer raised, or returned spans that do not fit the text."""


class TimeRecognizer(Protocol):
    def recognize(
        self, text: str, reference_instant: datetime, forward_bias: bool = True
    ) -> List[RecognizedTimeSpan]:
        ...


def reference_now() -> datetime:
    """Current wall-clock time (naive) in TASKS_TIMEZONE, or server local time when unset."""
    if config.TASKS_TIMEZONE:
        return datetime.now(ZoneInfo(config.TASKS_TIMEZONE)).replace(tzinfo=None)
    return datetime.now()


def to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    if config.TASKS_TIMEZONE:
        return dt.astimezone(ZoneInfo(config.TASKS_TIMEZONE)).replace(tzinfo=None)
    return dt.astimezone().replace(tzinfo=None)


def validate_spans(text: str, spans: Sequence[RecognizedTimeSpan]) -> List[RecognizedTimeSpan]:
    """
    Check recognizer output against the text it came from.
    Unsorted but disjoint spans are re-sorted; anything else inconsistent raises RecognizerFailure.
    """
    ordered = sorted(spans, key=lambda s: s.start_offset)
    if ordered != list(spans):
        record_resort()
        log_event("recognizer_spans_resorted", span_count=len(ordered))

    for s in ordered:
        if s.start_offset < 0 or s.end_offset > len(text) or not s.matched_text:
            raise RecognizerFailure(
                f"span [{s.start_offset}, {s.end_offset}) outside text of length {len(text)}"
            )
        if text[s.start_offset:s.end_offset].lower() != s.matched_text.lower():
            raise RecognizerFailure(f"span at {s.start_offset} does not match the text at that offset")

    for prev, cur in zip(ordered, ordered[1:]):
        if prev.span.overlaps(cur.span):
            raise RecognizerFailure(f"overlapping spans at {prev.start_offset} and {cur.start_offset}")
    return ordered


def _locate(text: str, matched: str, cursor: int) -> int:
    idx = text.find(matched, cursor)
    if idx == -1:
        idx = text.lower().find(matched.lower(), cursor)
    return idx


def trim_match(text: str, span: Span) -> Span:
    """Shrink a raw search match past edge punctuation and stop words: "at 5pm and" -> "at 5pm"."""
    chunk = span.slice(text)
    start, end = 0, len(chunk)
    while True:
        before = (start, end)
        while start < end and chunk[start] in EDGE_CHARS:
            start += 1
        while end > start and chunk[end - 1] in EDGE_CHARS:
            end -= 1
        inner = chunk[start:end]
        first = re.match(r"\w+", inner)
        if first and first.end() < len(inner) and first.group().lower() in LEADING_STOPWORDS:
            start += first.end()
        inner = chunk[start:end]
        last = re.search(r"\w+$", inner)
        if last and last.start() > 0 and last.group().lower() in TRAILING_STOPWORDS:
            end = start + last.start()
        if (start, end) == before:
            return Span(start, end).shift(span.start)


class DateparserRecognizer:
    """
    Time recognizer for dictated text.

    Everyday phrases ("tomorrow morning", "next monday at 10am") come from the rule grammar in
    `timephrases`. dateparser.search.search_dates then fills in whatever the grammar left
    alone, such as numeric dates. Its raw matches are trimmed of connectors and stop words,
    re-parsed when trimming changed them, and kept only when they carry a digit and do not
    overlap a grammar phrase. Word-only matches are where search_dates misfires ("may",
    "eight", "March the").
    """

    def __init__(self, languages: Optional[List[str]] = None):
        self.languages = languages or list(config.TASKS_LANGUAGES)
        self.grammar = SpokenTimeRecognizer()

    def _settings(self, reference_instant: datetime, forward_bias: bool) -> dict:
        settings = {
            "RELATIVE_BASE": reference_instant,
            "RETURN_AS_TIMEZONE_AWARE": False,
        }
        if forward_bias:
            settings["PREFER_DATES_FROM"] = "future"
        return settings

    def _reparse(self, phrase: str, settings: dict) -> Optional[datetime]:
        try:
            return dateparser.parse(phrase, languages=self.languages, settings=settings)
        except Exception as e:
            raise RecognizerFailure(f"dateparser_failed: {type(e).__name__}: {e}") from e

    def search(
        self, text: str, reference_instant: datetime, forward_bias: bool = True
    ) -> List[RecognizedTimeSpan]:
        """search_dates matches, located in `text`, trimmed and filtered."""
        settings = self._settings(reference_instant, forward_bias)
        try:
            results = dateparser.search.search_dates(text, languages=self.languages, settings=settings)
        except Exception as e:
            raise RecognizerFailure(f"dateparser_failed: {type(e).__name__}: {e}") from e

        spans: List[RecognizedTimeSpan] = []
        cursor = 0
        for matched, dt in results or []:
            idx = _locate(text, matched, cursor)
            if idx == -1:
                log_event("recognizer_match_unlocated", level=logging.WARNING, match_len=len(matched))
                continue
            cursor = idx + len(matched)
            span = trim_match(text, Span(idx, cursor))
            phrase = span.slice(text)
            if not DIGIT_RE.search(phrase):
                continue
            if span.length != len(matched):
                dt = self._reparse(phrase, settings) or dt
            spans.append(RecognizedTimeSpan(
                start_offset=span.start,
                matched_text=phrase,
                resolved_instant=to_local_naive(dt),
            ))
        return spans

    def recognize(
        self, text: str, reference_instant: datetime, forward_bias: bool = True
    ) -> List[RecognizedTimeSpan]:
        if not text.strip():
            return []
        spans = self.grammar.recognize(text, reference_instant, forward_bias)
        for extra in self.search(text, reference_instant, forward_bias):
            if not any(extra.span.overlaps(s.span) for s in spans):
                spans.append(extra)
        spans.sort(key=lambda s: s.start_offset)
        return spans


_DEFAULT_RECOGNIZER: Optional[DateparserRecognizer] = None


def default_recognizer() -> DateparserRecognizer:
    global _DEFAULT_RECOGNIZER
    if _DEFAULT_RECOGNIZER is None:
        _DEFAULT_RECOGNIZER = DateparserRecognizer()
    return _DEFAULT_RECOGNIZER
