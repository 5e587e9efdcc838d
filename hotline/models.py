"""Shared pydantic models — the contract between the handler, limiters and gateways."""

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class IssueRequest(BaseModel):
    """Inbound bug report. Anything besides title/description is dropped."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: StrictStr = Field(min_length=1)
    description: StrictStr = Field(min_length=1)


class IssueResult(BaseModel):
    """Returned by create_issue — only ``url`` goes back over the wire."""

    model_config = ConfigDict(frozen=True)

    url: str
    identifier: str | None = None  # ENG-123, when Linear reports it


class Admission(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    remaining: int = 0
    retry_after: float | None = None  # seconds until the identity is admissible again
