from datetime import datetime
from typing import Iterable, List, Optional

from .cleaner import clean_task_text, normalize_input
from .recognizer import RecognizerFailure, TimeRecognizer, default_recognizer, reference_now, validate_spans
from .schema import ExtractedTask
from .segmenter import segment
from .spans import RecognizedTimeSpan


def _recognize(text: str, now: Optional[datetime], recognizer: Optional[TimeRecognizer]) -> List[RecognizedTimeSpan]:
    recognizer = recognizer or default_recognizer()
    try:
        spans = recognizer.recognize(text, now or reference_now(), forward_bias=True)
    except RecognizerFailure:
        raise
    except Exception as e:
        raise RecognizerFailure(f"recognizer_failed: {type(e).__name__}: {e}") from e
    return validate_spans(text, spans)


def deduplicate(tasks: Iterable[ExtractedTask]) -> List[ExtractedTask]:
    """Drop tasks with the same text (case-insensitive) and reminder time; first one wins."""
    seen = set()
    out: List[ExtractedTask] = []
    for t in tasks:
        key = t.dedup_key()
        if key not in seen:
            seen.add(key)
            out.append(t)
    return out


def extract_tasks(
    raw_text: str,
    now: Optional[datetime] = None,
    recognizer: Optional[TimeRecognizer] = None,
) -> List[ExtractedTask]:
    """
    Split a spoken transcript into reminder tasks, one per time expression.

    Always returns at least one task. Without any time expression the whole transcript
    becomes a single task with no reminder. Raises RecognizerFailure only when the
    recognizer itself fails or hands back spans that do not fit the text.
    """
    text = normalize_input(raw_text)
    spans = _recognize(text, now, recognizer)
    if not spans:
        return [ExtractedTask(text=clean_task_text(text))]

    tasks = [
        ExtractedTask(
            text=clean_task_text(seg.raw_text(text), seg.time_span.matched_text),
            reminder_time=seg.time_span.resolved_instant,
            original_time_text=seg.time_span.matched_text,
        )
        for seg in segment(text, spans)
    ]
    return deduplicate(tasks)


def first_time_span(
    text: str,
    now: Optional[datetime] = None,
    recognizer: Optional[TimeRecognizer] = None,
) -> Optional[RecognizedTimeSpan]:
    spans = _recognize((text or "").strip(), now, recognizer)
    return spans[0] if spans else None


def parse_relative_time(
    text: str,
    now: Optional[datetime] = None,
    recognizer: Optional[TimeRecognizer] = None,
) -> Optional[datetime]:
    """Resolved instant of the first time expression in `text`, or None."""
    span = first_time_span(text, now=now, recognizer=recognizer)
    return span.resolved_instant if span else None
