"""
Rule grammar for the time phrases people actually dictate.

A phrase is built from adjacent pieces: a day ("tomorrow", "next monday", "march 5th"),
a part of the day ("morning", "in the evening"), a clock time ("at 5pm", "noon") or a
relative offset ("in 20 minutes"). Pieces separated only by whitespace merge into one
phrase, so "next monday at 10am" and "tomorrow morning" each come out as a single span.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

from .spans import RecognizedTimeSpan, Span

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]
MONTH_ABBREVIATIONS = ["jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec"]
MONTH_NUMBERS = {m[:3]: i + 1 for i, m in enumerate(MONTHS)}

DAY_PARTS = {
    "morning": time(9),
    "afternoon": time(15),
    "evening": time(18),
    "night": time(20),
}
LATE_DAY_PARTS = {"afternoon", "evening", "night"}

# "at 5" with no am/pm: 1-7 read as afternoon/evening, 8-12 as written
BARE_HOUR_PM_UNTIL = 7

AMOUNT_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "a couple of": 2, "a few": 3,
}
UNIT_STEPS = {
    "min": timedelta(minutes=1),
    "minute": timedelta(minutes=1),
    "hr": timedelta(hours=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}


def _words(words: Sequence[str]) -> str:
    ordered = sorted(words, key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(part) for part in w.split()) for w in ordered)


_START = r"(?<!\w)"
_END = r"(?!\w)"
_MONTH = _words(MONTHS + MONTH_ABBREVIATIONS)
_ORDINAL = r"(?:st|nd|rd|th)?"
_YEAR = r"(?:,?\s+(?P<year>\d{4}))?"

DAY_RE = re.compile(
    _START + r"(?:"
    r"(?P<after>(?:the\s+)?day\s+after\s+tomorrow)"
    r"|(?P<word>today|tonight|tomorrow)"
    r"|(?P<nextweek>next\s+week)"
    r"|(?:on\s+)?(?:(?P<modifier>next|this|coming)\s+)?(?P<weekday>" + _words(WEEKDAYS) + r")"
    r")" + _END,
    re.I,
)
DATE_MONTH_DAY_RE = re.compile(
    _START + r"(?:on\s+)?(?P<month>" + _MONTH + r")\.?\s+(?P<day>\d{1,2})" + _ORDINAL + _YEAR + _END,
    re.I,
)
DATE_DAY_MONTH_RE = re.compile(
    _START + r"(?:on\s+)?(?:the\s+)?(?P<day>\d{1,2})" + _ORDINAL + r"\s+(?:of\s+)?(?P<month>" + _MONTH + r")"
    + _YEAR + _END,
    re.I,
)
TIME_RE = re.compile(
    _START + r"(?:"
    r"(?:at\s+)?(?:"
    r"(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<meridiem>a\.m\.|p\.m\.|am|pm)"
    r"|(?P<hour24>\d{1,2}):(?P<minute24>\d{2})"
    r"|(?P<named>noon|midnight)"
    r")"
    r"|at\s+(?P<bare>\d{1,2})(?:\s+o'?clock)?"
    r")" + _END,
    re.I,
)
DAY_PART_RE = re.compile(
    _START + r"(?:(?P<lead>in\s+the|this)\s+)?(?P<part>" + _words(list(DAY_PARTS)) + r")" + _END,
    re.I,
)
OFFSET_RE = re.compile(
    _START + r"in\s+(?:(?P<half>half\s+an)|(?P<count>\d+)|(?P<amount>" + _words(list(AMOUNT_WORDS)) + r"))"
    r"\s+(?P<unit>minutes?|mins?|hours?|hrs?|days?|weeks?)" + _END,
    re.I,
)

PIECE_PATTERNS = [
    ("day", DAY_RE),
    ("date", DATE_MONTH_DAY_RE),
    ("date", DATE_DAY_MONTH_RE),
    ("time", TIME_RE),
    ("part", DAY_PART_RE),
    ("offset", OFFSET_RE),
]

# a phrase holds at most one piece per slot
SLOTS = {"day": "day", "date": "day", "offset": "day", "time": "clock", "part": "part"}


@dataclass(frozen=True)
class Piece:
    kind: str
    span: Span
    match: re.Match

    @property
    def slot(self) -> str:
        return SLOTS[self.kind]

    def offset_step(self) -> timedelta:
        m = self.match
        unit = UNIT_STEPS[m.group("unit").lower().rstrip("s")]
        if m.group("half"):
            return unit / 2
        if m.group("count"):
            return unit * int(m.group("count"))
        return unit * AMOUNT_WORDS[" ".join(m.group("amount").lower().split())]

    @property
    def within_day(self) -> bool:
        """'in 20 minutes' is a complete instant on its own and takes no clock or day part."""
        return self.kind == "offset" and self.offset_step() < timedelta(days=1)


def find_pieces(text: str) -> List[Piece]:
    """All grammar pieces in `text`, left to right; on overlap the earlier, then longer, piece wins."""
    found = [
        Piece(kind, Span(m.start(), m.end()), m)
        for kind, pattern in PIECE_PATTERNS
        for m in pattern.finditer(text)
    ]
    found.sort(key=lambda p: (p.span.start, -p.span.length))
    pieces: List[Piece] = []
    for p in found:
        if pieces and p.span.overlaps(pieces[-1].span):
            continue
        pieces.append(p)
    return pieces


def _joins(text: str, phrase: List[Piece], piece: Piece) -> bool:
    if text[phrase[-1].span.end:piece.span.start].strip():
        return False
    if piece.within_day or any(p.within_day for p in phrase):
        return False
    return piece.slot not in {p.slot for p in phrase}


def group_pieces(text: str, pieces: Sequence[Piece]) -> List[List[Piece]]:
    phrases: List[List[Piece]] = []
    for piece in pieces:
        if phrases and _joins(text, phrases[-1], piece):
            phrases[-1].append(piece)
        else:
            phrases.append([piece])
    # "game night", "morning run": a bare day part is only a time next to a day or clock
    return [
        ph for ph in phrases
        if not (len(ph) == 1 and ph[0].kind == "part" and not ph[0].match.group("lead"))
    ]


def _clock(m: re.Match, part: Optional[str]) -> time:
    if m.group("named"):
        return time(12) if m.group("named").lower() == "noon" else time(0)
    if m.group("hour24"):
        return time(int(m.group("hour24")), int(m.group("minute24")))
    if m.group("meridiem"):
        hour = int(m.group("hour"))
        if not 1 <= hour <= 12:
            raise ValueError(f"hour {hour} with am/pm")
        hour %= 12
        if m.group("meridiem").lower().startswith("p"):
            hour += 12
        return time(hour, int(m.group("minute") or 0))
    hour = int(m.group("bare"))
    if not 1 <= hour <= 12:
        raise ValueError(f"bare hour {hour}")
    if part in LATE_DAY_PARTS:
        if hour < 12:
            hour += 12
    elif part == "morning":
        hour %= 12
    elif hour <= BARE_HOUR_PM_UNTIL:
        hour += 12
    return time(hour)


def _next_valid_year(moment: datetime, reference: datetime) -> datetime:
    # feb 29 only exists in leap years
    for years in range(1, 9):
        try:
            candidate = moment.replace(year=moment.year + years)
        except ValueError:
            continue
        if candidate >= reference:
            return candidate
    return moment


def resolve_phrase(phrase: Sequence[Piece], reference: datetime, forward_bias: bool = True) -> datetime:
    """
    Resolve merged pieces against `reference`.

    Without a clock time or day part the reference time of day is kept. With forward bias,
    a result that lands before `reference` moves to the next matching occurrence: the next
    day for a bare clock time, the next week for a bare weekday, the next year for a yearless
    date. Explicit days ("today", "this friday") stay put. Raises ValueError for impossible
    dates and times ("feb 30", "at 13pm").
    """
    by_slot = {p.slot: p for p in phrase}
    day, clock, part_piece = by_slot.get("day"), by_slot.get("clock"), by_slot.get("part")
    part = part_piece.match.group("part").lower() if part_piece else None

    base = reference.date()
    roll: Optional[timedelta] = timedelta(days=1)
    yearless = False

    if day is not None:
        roll = None
        m = day.match
        if day.kind == "offset":
            step = day.offset_step()
            if day.within_day:
                return reference + step
            base = (reference + step).date()
        elif day.kind == "date":
            month = MONTH_NUMBERS[m.group("month").lower()[:3]]
            base = date(int(m.group("year") or reference.year), month, int(m.group("day")))
            yearless = m.group("year") is None
        elif m.group("after"):
            base += timedelta(days=2)
        elif m.group("nextweek"):
            base += timedelta(weeks=1)
        elif m.group("word"):
            word = m.group("word").lower()
            if word == "tomorrow":
                base += timedelta(days=1)
            elif word == "tonight" and part is None:
                part = "night"
        else:
            ahead = (WEEKDAYS.index(m.group("weekday").lower()) - reference.weekday()) % 7
            modifier = (m.group("modifier") or "").lower()
            if modifier in ("next", "coming") and ahead == 0:
                ahead = 7
            base += timedelta(days=ahead)
            if not modifier:
                roll = timedelta(weeks=1)

    if clock is not None:
        at = _clock(clock.match, part)
    elif part is not None:
        at = DAY_PARTS[part]
    else:
        at = reference.time().replace(second=0, microsecond=0)

    resolved = datetime.combine(base, at)
    if forward_bias and resolved < reference:
        if yearless:
            resolved = _next_valid_year(resolved, reference)
        elif roll is not None:
            resolved += roll
    return resolved


class SpokenTimeRecognizer:
    """Recognizes weekday, relative-day, clock, day-part, offset and month-day phrases."""

    def recognize(
        self, text: str, reference_instant: datetime, forward_bias: bool = True
    ) -> List[RecognizedTimeSpan]:
        spans: List[RecognizedTimeSpan] = []
        for phrase in group_pieces(text, find_pieces(text)):
            try:
                resolved = resolve_phrase(phrase, reference_instant, forward_bias)
            except ValueError:
                # looks like a time but names none ("feb 30", "at 13pm")
                continue
            start, end = phrase[0].span.start, phrase[-1].span.end
            spans.append(RecognizedTimeSpan(
                start_offset=start,
                matched_text=text[start:end],
                resolved_instant=resolved,
            ))
        return spans
