from __future__ import annotations

from datetime import datetime
import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from app.nlu.config import MAX_TRANSCRIPT_CHARS
from app.nlu.extractor import extract_tasks, first_time_span
from app.nlu.recognizer import RecognizerFailure, TimeRecognizer, default_recognizer, to_local_naive
from app.nlu.schema import ExtractedTask, format_reminder_time
from app.observability.metrics import (
    timer_start, timer_observe_ms, record_outcome, record_task_count, record_error
)
from app.observability.logs import log_event

router = APIRouter(tags=["api"])


class ExtractIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcript: str = Field(default="", max_length=MAX_TRANSCRIPT_CHARS)
    reference_time: datetime | None = Field(default=None, alias="referenceTime")


class ExtractOut(BaseModel):
    tasks: list[ExtractedTask] = Field(default_factory=list)
    count: int = 0


class ParseTimeIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(default="", max_length=MAX_TRANSCRIPT_CHARS)
    reference_time: datetime | None = Field(default=None, alias="referenceTime")


class ParseTimeOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reminder_time: str | None = Field(default=None, alias="reminderTime")
    original_time_text: str | None = Field(default=None, alias="originalTimeText")


def get_recognizer() -> TimeRecognizer:
    return default_recognizer()


def _reference(value: datetime | None) -> datetime | None:
    # clients may send an offset; the engine works in naive local wall-clock time
    return to_local_naive(value) if value is not None else None


def _fail(endpoint: str, request_id: str, t0: float, e: Exception) -> None:
    timer_observe_ms(t0)
    record_error(type(e).__name__)
    record_outcome(endpoint, "error")
    log_event(
        f"{endpoint}_error",
        request_id=request_id,
        error_type=type(e).__name__,
    )


@router.post("/tasks/extract", response_model=ExtractOut, response_model_by_alias=True)
def extract(payload: ExtractIn, recognizer: TimeRecognizer = Depends(get_recognizer)):
    t0 = timer_start()
    request_id = str(uuid.uuid4())  # define before try so except can log it

    try:
        # do not log the transcript itself
        log_event(
            "extract_request",
            request_id=request_id,
            transcript_chars=len(payload.transcript),
            has_reference_time=payload.reference_time is not None,
        )
        tasks = extract_tasks(payload.transcript, now=_reference(payload.reference_time), recognizer=recognizer)
    except RecognizerFailure as e:
        _fail("extract", request_id, t0, e)
        raise HTTPException(status_code=502, detail="time_recognizer_failed") from e
    except Exception as e:
        _fail("extract", request_id, t0, e)
        raise

    elapsed_ms = timer_observe_ms(t0)
    record_outcome("extract", "ok")
    record_task_count(len(tasks))
    log_event(
        "extract_response",
        request_id=request_id,
        task_count=len(tasks),
        timed_tasks=sum(1 for t in tasks if t.reminder_time is not None),
        elapsed_ms=round(elapsed_ms, 2),
    )
    return ExtractOut(tasks=tasks, count=len(tasks))


@router.post("/time/parse", response_model=ParseTimeOut, response_model_by_alias=True)
def parse_time(payload: ParseTimeIn, recognizer: TimeRecognizer = Depends(get_recognizer)):
    t0 = timer_start()
    request_id = str(uuid.uuid4())

    try:
        span = first_time_span(payload.text, now=_reference(payload.reference_time), recognizer=recognizer)
    except RecognizerFailure as e:
        _fail("parse_time", request_id, t0, e)
        raise HTTPException(status_code=502, detail="time_recognizer_failed") from e
    except Exception as e:
        _fail("parse_time", request_id, t0, e)
        raise

    elapsed_ms = timer_observe_ms(t0)
    record_outcome("parse_time", "ok" if span else "no_match")
    log_event(
        "parse_time_response",
        request_id=request_id,
        matched=span is not None,
        elapsed_ms=round(elapsed_ms, 2),
    )
    if span is None:
        return ParseTimeOut()
    return ParseTimeOut(
        reminder_time=format_reminder_time(span.resolved_instant),
        original_time_text=span.matched_text,
    )
