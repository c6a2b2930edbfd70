"""Pydantic models for analytics events."""

from pydantic import BaseModel, Field

EventProps = dict[str, str | int | float | bool]


class AnalyticsEvent(BaseModel):
    """A single event sent to the analytics sink.

    Attributes:
        name: Event name (e.g., 'Search', 'Tool Click')
        url: Page URL the event is attributed to
        domain: Site domain registered with the sink
        props: Custom event properties
    """

    name: str = Field(..., description="Event name")
    url: str = Field(..., description="Page URL")
    domain: str = Field(..., description="Site domain")
    props: EventProps = Field(default_factory=dict, description="Custom properties")
