"""Completion log domain model."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CompletionLog(BaseModel):
    """One entry per completion added to a habit."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    habit_id: str = Field(..., description="Habit the completion belongs to")
    date: dt.date = Field(..., description="Completed calendar date")
    timestamp: int = Field(..., description="Time the completion was recorded, epoch milliseconds")
