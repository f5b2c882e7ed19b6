from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator

REMINDER_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"  # naive local wall-clock, no offset


class ExtractedTask(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    reminder_time: Optional[datetime] = Field(default=None, alias="reminderTime")
    original_time_text: Optional[str] = Field(default=None, alias="originalTimeText")

    @model_validator(mode="after")
    def _time_fields_paired(self):
        if (self.reminder_time is None) != (self.original_time_text is None):
            raise ValueError("reminderTime and originalTimeText must be set together")
        return self

    @field_serializer("reminder_time")
    def _format_reminder_time(self, value: Optional[datetime]) -> Optional[str]:
        return format_reminder_time(value)

    def dedup_key(self) -> tuple:
        return (self.text.lower(), self.reminder_time)


def format_reminder_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(REMINDER_TIME_FORMAT)
