from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Span:
    """Half-open [start, end) range of code-point offsets into the cleaned input."""
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        return text[self.start:self.end]

    def shift(self, delta: int) -> Span:
        return Span(self.start + delta, self.end + delta)

    def gap(self, other: Span) -> Span:
        """The range strictly between this span and a later one (empty if they touch)."""
        return Span(self.end, max(self.end, other.start))

    def overlaps(self, other: Span) -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class RecognizedTimeSpan:
    start_offset: int
    matched_text: str
    resolved_instant: datetime

    @property
    def span(self) -> Span:
        return Span(self.start_offset, self.start_offset + len(self.matched_text))

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.matched_text)


@dataclass(frozen=True)
class Segment:
    time_span: RecognizedTimeSpan
    bounds: Span

    def raw_text(self, text: str) -> str:
        return self.bounds.slice(text)
