"""Pydantic models for view and vote counters."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CountMap = dict[str, int]

VoteOutcome = Literal["voted", "already_voted"]


class CounterModel(BaseModel):
    """Base for counter wire models (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ViewRequest(CounterModel):
    """Body of a record-view call.

    Fields are optional so the route can answer a missing id with 400
    rather than a schema error.
    """

    tool_id: str | None = Field(default=None, description="Viewed tool id")


class VoteRequest(CounterModel):
    """Body of a cast-vote call."""

    tool_id: str | None = Field(default=None, description="Voted tool id")
    voter_id: str | None = Field(default=None, description="Client voter UUID")


class ViewRecorded(CounterModel):
    """Response to a recorded view."""

    success: bool = True


class VoteRecorded(CounterModel):
    """Response to a cast vote.

    Attributes:
        success: Always True when the store accepted the call
        result: 'voted' for a new vote, 'already_voted' for a repeat
    """

    success: bool = True
    result: VoteOutcome = "voted"
