"""Inbound payload parsing."""

from pydantic import ValidationError

from hotline.errors import InvalidPayload, MissingField
from hotline.models import IssueRequest

_MISSING_TYPES = {"missing", "string_too_short"}


def parse_issue_request(body: bytes) -> IssueRequest:
    """Parse a raw request body into an IssueRequest.

    Broken JSON or the wrong shape raises InvalidPayload; an absent, null or
    empty title/description raises MissingField. Values are passed through
    untrimmed.
    """
    try:
        return IssueRequest.model_validate_json(body)
    except ValidationError as exc:
        errors = exc.errors()
        if any(err["type"] == "json_invalid" for err in errors):
            raise InvalidPayload("Invalid JSON") from exc
        for err in errors:
            if err["type"] in _MISSING_TYPES or (err["loc"] and err.get("input", ...) is None):
                raise MissingField(str(err["loc"][0])) from exc
        raise InvalidPayload(
            "Invalid payload: expected a JSON object with string title and description"
        ) from exc
