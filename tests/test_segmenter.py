from datetime import datetime

from app.nlu.segmenter import segment, segment_end
from app.nlu.spans import Span

from conftest import span_of

T = datetime(2024, 1, 10, 17)


def _bounds(segments):
    return [s.bounds for s in segments]


def test_connector_goes_to_next_segment():
    text = "call mom at 5pm and then pick up groceries tomorrow morning"
    spans = [span_of(text, "at 5pm", T), span_of(text, "tomorrow morning", T)]
    segs = segment(text, spans)
    assert _bounds(segs) == [Span(0, 15), Span(15, len(text))]
    assert segs[1].raw_text(text).startswith(" and then")


def test_sentence_end_keeps_punctuation():
    text = "meeting friday at 3pm. meeting friday at 3pm."
    first = span_of(text, "friday at 3pm", T)
    second = span_of(text, "friday at 3pm", T, after=first.end_offset)
    segs = segment(text, [first, second])
    assert _bounds(segs) == [Span(0, 22), Span(22, len(text))]
    assert segs[0].raw_text(text) == "meeting friday at 3pm."


def test_no_break_absorbs_gap():
    text = "pay rent friday gym saturday"
    spans = [span_of(text, "friday", T), span_of(text, "saturday", T)]
    assert segment_end(text, spans[0], spans[1]) == text.index("saturday")


def test_connector_preferred_over_sentence_end():
    text = "dentist friday. Then laundry saturday"
    spans = [span_of(text, "friday", T), span_of(text, "saturday", T)]
    # cut at the whitespace before "Then", not after the period
    assert segment_end(text, spans[0], spans[1]) == text.index(" Then")


def test_only_gap_is_searched():
    # the "and" before the first time phrase must not end the first segment
    text = "bread and milk friday eggs saturday"
    spans = [span_of(text, "friday", T), span_of(text, "saturday", T)]
    assert segment_end(text, spans[0], spans[1]) == text.index("saturday")


def test_single_span_covers_whole_text():
    text = "renew passport friday please"
    segs = segment(text, [span_of(text, "friday", T)])
    assert _bounds(segs) == [Span(0, len(text))]


def test_segments_are_contiguous():
    text = "okay gym at 7pm and also call Ann friday. plus dinner saturday"
    spans = [span_of(text, "at 7pm", T), span_of(text, "friday", T), span_of(text, "saturday", T)]
    segs = segment(text, spans)
    assert segs[0].bounds.start == 0
    assert segs[-1].bounds.end == len(text)
    for prev, cur in zip(segs, segs[1:]):
        assert prev.bounds.end == cur.bounds.start
    assert "".join(s.raw_text(text) for s in segs) == text


def test_no_spans_no_segments():
    assert segment("anything", []) == []
