import re
from datetime import datetime, timedelta

from app.nlu.spans import RecognizedTimeSpan

# Wednesday
REF = datetime(2024, 1, 10, 9, 0, 0)

# phrase -> offset from midnight of the reference day
PHRASES = {
    "at 5pm": timedelta(hours=17),
    "at 6pm": timedelta(hours=18),
    "at 7pm": timedelta(hours=19),
    "at noon": timedelta(hours=12),
    "at 5 p.m.": timedelta(hours=17),
    "tomorrow morning": timedelta(days=1, hours=9),
    "tomorrow": timedelta(days=1, hours=9),
    "friday at 3pm": timedelta(days=2, hours=15),
    "friday at 10am": timedelta(days=2, hours=10),
    "friday": timedelta(days=2, hours=9),
    "on saturday": timedelta(days=3, hours=9),
    "saturday": timedelta(days=3, hours=9),
}


class PhraseRecognizer:
    """Deterministic stand-in for the dateparser recognizer: a fixed phrase table, longest match wins."""

    def __init__(self, phrases=None):
        self.phrases = phrases or PHRASES
        self.calls = []

    def recognize(self, text, reference_instant, forward_bias=True):
        self.calls.append((text, reference_instant, forward_bias))
        midnight = reference_instant.replace(hour=0, minute=0, second=0, microsecond=0)
        found = []
        for phrase, delta in self.phrases.items():
            for m in re.finditer(r"(?<!\w)" + re.escape(phrase) + r"(?!\w)", text, flags=re.I):
                found.append((m.start(), m.group(0), midnight + delta))
        found.sort(key=lambda f: (f[0], -len(f[1])))
        spans = []
        end = -1
        for start, matched, dt in found:
            if start < end:
                continue
            spans.append(RecognizedTimeSpan(start_offset=start, matched_text=matched, resolved_instant=dt))
            end = start + len(matched)
        return spans


class ListRecognizer:
    """Returns exactly the spans it was given, whatever the text."""

    def __init__(self, spans):
        self.spans = list(spans)

    def recognize(self, text, reference_instant, forward_bias=True):
        return list(self.spans)


class RaisingRecognizer:
    def __init__(self, exc=None):
        self.exc = exc or RuntimeError("boom")

    def recognize(self, text, reference_instant, forward_bias=True):
        raise self.exc


def span_of(text, phrase, dt, after=0):
    return RecognizedTimeSpan(start_offset=text.index(phrase, after), matched_text=phrase, resolved_instant=dt)
