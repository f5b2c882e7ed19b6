from typing import List, Sequence

from .rules import find_boundary
from .spans import RecognizedTimeSpan, Segment, Span


def segment_end(text: str, current: RecognizedTimeSpan, following: RecognizedTimeSpan) -> int:
    """
    Where the task for `current` stops, given the next time expression.
    Connector beats sentence end; with no natural break the gap stays with `current`.
    """
    gap = current.span.gap(following.span)
    hit = find_boundary(gap.slice(text))
    if hit is None:
        return following.start_offset
    _, offset = hit
    return gap.start + offset


def segment(text: str, spans: Sequence[RecognizedTimeSpan]) -> List[Segment]:
    """Partition `text` into one contiguous segment per span; spans must be sorted and disjoint."""
    segments: List[Segment] = []
    start = 0
    for i, ts in enumerate(spans):
        if i == len(spans) - 1:
            end = len(text)
        else:
            end = segment_end(text, ts, spans[i + 1])
        segments.append(Segment(time_span=ts, bounds=Span(start, end)))
        start = end
    return segments
