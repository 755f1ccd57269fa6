"""Backend error body parsing.

Failed backend calls usually return:
{
    "message": "Bid amount must exceed current price",
    ...
}
but some endpoints return plain text or an ASP.NET problem-details object
("title"/"detail"). ``error_reason`` extracts whatever human-readable reason
is present, or None so callers fall back to a generic message.
"""

import json

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str | None = None
    detail: str | None = None
    title: str | None = None

    def reason(self) -> str | None:
        for value in (self.message, self.detail, self.title):
            if value and value.strip():
                return value.strip()
        return None


def error_reason(body: str | None) -> str | None:
    if not body or not body.strip():
        return None
    try:
        parsed = json.loads(body)
    except json.JSONDecodeError:
        return body.strip()[:500]
    if isinstance(parsed, dict):
        try:
            return ErrorBody.model_validate(parsed).reason()
        except SchemaError:
            return None
    if isinstance(parsed, str) and parsed.strip():
        return parsed.strip()
    return None
